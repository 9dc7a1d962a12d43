"""Receipt command handlers used by the unified CLI."""

import argparse
import sys
from pathlib import Path

from tabsplit.domain.receipt import Receipt
from tabsplit.receipt.formatter import format_bill_summary, format_currency, format_receipt, items_to_json
from tabsplit.runtime import get_logger

logger = get_logger(__name__)


def _read_input(source: str) -> str:
    if source == "-":
        return sys.stdin.read()
    path = Path(source)
    if not path.exists():
        print(f"Error: file not found: {source}")
        sys.exit(1)
    return path.read_text(encoding="utf-8")


def _print_receipt(receipt: Receipt) -> None:
    print("\n" + "=" * 60)
    print(format_receipt(receipt))
    print("=" * 60)


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the FastAPI server for receiving receipt uploads."""
    import uvicorn

    from tabsplit.runtime import receipt_server as server

    print(f"Starting receipt server on {args.host}:{args.port}")
    print(f"Upload endpoint: http://{args.host}:{args.port}/upload")
    print("Press Ctrl+C to stop")

    uvicorn.run(server.app, host=args.host, port=args.port)


def cmd_scan(args: argparse.Namespace) -> None:
    """Scan a receipt image and save the extracted items."""
    from tabsplit.application.receipts.scan import ReceiptScanRequest, run_receipt_scan

    result = run_receipt_scan(
        ReceiptScanRequest(
            image_path=Path(args.image),
            ocr_url=args.ocr_url,
            model_url=args.model_url,
            use_model=args.use_model,
            save=not args.no_save,
        )
    )

    if result.status in ("file_not_found", "image_unreadable"):
        logger.error("%s", result.error)
        print(f"Error: {result.error}")
        sys.exit(1)

    if result.status == "ocr_unavailable":
        logger.error("%s", result.error)
        print(f"OCR service unavailable: {result.error}")
        print("Make sure the OCR service is running before scanning receipts.")
        sys.exit(1)

    if result.status == "model_unavailable":
        logger.error("%s", result.error)
        print(f"Model service unavailable: {result.error}")
        print("Start the local model server, or scan without --use-model.")
        sys.exit(1)

    if result.status == "no_items":
        print(result.error)
        sys.exit(2)

    assert result.receipt is not None
    _print_receipt(result.receipt)
    if result.saved_path is not None:
        print(f"\nSaved receipt to: {result.saved_path}")
        print(f"Select your items with: tabsplit select {result.receipt.receipt_id} <item numbers>")


def cmd_parse_text(args: argparse.Namespace) -> None:
    """Run the OCR-line path on a text file and print the canonical items JSON."""
    from tabsplit.receipt.assembler import receipt_from_ocr_lines
    from tabsplit.runtime import load_settings

    lines = _read_input(args.file).splitlines()
    receipt = receipt_from_ocr_lines(lines, keywords=load_settings().classifier.extra_keywords)
    print(items_to_json(receipt.items))
    _save_if_requested(args, receipt)


def cmd_normalize(args: argparse.Namespace) -> None:
    """Run the model-output path on a text file and print the canonical items JSON."""
    from tabsplit.receipt.assembler import receipt_from_model_response

    receipt = receipt_from_model_response(_read_input(args.file))
    print(items_to_json(receipt.items))
    _save_if_requested(args, receipt)


def _save_if_requested(args: argparse.Namespace, receipt: Receipt) -> None:
    if not args.save:
        return
    from tabsplit.runtime.receipt_storage import save_receipt

    saved_path = save_receipt(receipt)
    print(f"Saved receipt {receipt.receipt_id} to: {saved_path}", file=sys.stderr)


def cmd_list(args: argparse.Namespace) -> None:
    """List saved receipts, newest first."""
    from tabsplit.runtime.receipt_storage import list_receipts

    receipts = list_receipts()
    if not receipts:
        print("No saved receipts.")
        return

    for receipt in receipts:
        scanned = receipt.timestamp.strftime("%Y-%m-%d %H:%M")
        print(
            f"{receipt.receipt_id}  {scanned}  {len(receipt.items):>3} items  "
            f"total {format_currency(receipt.total):>10}  yours {format_currency(receipt.selected_total):>10}"
        )


def cmd_show(args: argparse.Namespace) -> None:
    """Show one saved receipt."""
    from tabsplit.runtime.receipt_storage import ReceiptNotFound, ReceiptStorageError, load_receipt

    try:
        receipt = load_receipt(args.receipt_id)
    except (ReceiptNotFound, ReceiptStorageError) as exc:
        print(f"Error: {exc}")
        sys.exit(1)

    if args.summary:
        print(format_bill_summary(receipt))
    else:
        _print_receipt(receipt)


def cmd_select(args: argparse.Namespace) -> None:
    """Toggle, select or deselect items on a saved receipt."""
    from tabsplit.application.receipts.selection import SelectItemsRequest, run_select_items

    if args.all:
        mode = "all"
    elif args.none:
        mode = "none"
    else:
        mode = "toggle"
        if not args.indexes:
            print("Error: give item numbers to toggle, or --all / --none.")
            sys.exit(1)

    result = run_select_items(SelectItemsRequest(receipt_id=args.receipt_id, indexes=args.indexes, mode=mode))
    if result.status != "updated":
        print(f"Error: {result.error}")
        sys.exit(1)

    assert result.receipt is not None
    _print_receipt(result.receipt)
