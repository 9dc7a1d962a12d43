#!/usr/bin/env python3

import argparse
from collections.abc import Callable, Sequence

from tabsplit.cli import receipt as receipt_commands


def _coerce_exit_code(code: object) -> int:
    if code is None:
        return 0
    if isinstance(code, int):
        return code
    return 1


def _run_command(command: Callable[[argparse.Namespace], None], args: argparse.Namespace) -> int:
    """
    Run a command handler that may call sys.exit().

    This keeps process termination centralized in this module's entrypoint.
    """
    try:
        command(args)
    except SystemExit as exc:
        return _coerce_exit_code(exc.code)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tabsplit",
        description="Receipt item extraction and bill splitting",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  scan <image>               Scan a receipt image and save the extracted items
  parse-text <file|->        Extract items from OCR text lines
  normalize <file|->         Decode items from raw model output
  list                       List saved receipts
  show <id> [--summary]      Show a saved receipt (or the shareable bill)
  select <id> [n ...]        Toggle items; --all / --none for every item
  serve [--host] [--port]    Start receipt upload server
""",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    scan_parser = subparsers.add_parser("scan", help="Scan a receipt image")
    scan_parser.add_argument("image", help="Path to receipt image")
    scan_parser.add_argument("--ocr-url", default=None, help="OCR service URL (default: from settings)")
    scan_parser.add_argument("--model-url", default=None, help="Model service URL (default: from settings)")
    scan_parser.add_argument(
        "--use-model", action="store_true", help="Let the local model extract items instead of the line parser"
    )
    scan_parser.add_argument("--no-save", action="store_true", help="Print items without saving the receipt")

    parse_text_parser = subparsers.add_parser("parse-text", help="Extract items from OCR text lines")
    parse_text_parser.add_argument("file", help="Text file with one OCR line per line, or - for stdin")
    parse_text_parser.add_argument("--save", action="store_true", help="Save the assembled receipt")

    normalize_parser = subparsers.add_parser("normalize", help="Decode items from raw model output")
    normalize_parser.add_argument("file", help="File with model output, or - for stdin")
    normalize_parser.add_argument("--save", action="store_true", help="Save the assembled receipt")

    subparsers.add_parser("list", help="List saved receipts")

    show_parser = subparsers.add_parser("show", help="Show a saved receipt")
    show_parser.add_argument("receipt_id", help="Receipt id (see 'list')")
    show_parser.add_argument("--summary", action="store_true", help="Print the shareable bill for selected items")

    select_parser = subparsers.add_parser("select", help="Toggle item selection on a saved receipt")
    select_parser.add_argument("receipt_id", help="Receipt id (see 'list')")
    select_parser.add_argument("indexes", nargs="*", type=int, help="1-based item numbers to toggle")
    select_group = select_parser.add_mutually_exclusive_group()
    select_group.add_argument("--all", action="store_true", help="Select every item")
    select_group.add_argument("--none", action="store_true", help="Deselect every item")

    serve_parser = subparsers.add_parser("serve", help="Start receipt upload server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Host to bind to (default: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind to (default: 8000)")

    return parser


COMMANDS: dict[str, Callable[[argparse.Namespace], None]] = {
    "scan": receipt_commands.cmd_scan,
    "parse-text": receipt_commands.cmd_parse_text,
    "normalize": receipt_commands.cmd_normalize,
    "list": receipt_commands.cmd_list,
    "show": receipt_commands.cmd_show,
    "select": receipt_commands.cmd_select,
    "serve": receipt_commands.cmd_serve,
}


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    if args.verbose:
        import logging

        from tabsplit.runtime import set_log_level

        set_log_level(logging.DEBUG)

    return _run_command(COMMANDS[args.command], args)


if __name__ == "__main__":
    raise SystemExit(main())
