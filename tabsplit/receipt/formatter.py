"""Format items and receipts as canonical JSON and shareable text."""

import json
from collections.abc import Sequence
from decimal import Decimal

from tabsplit.domain.receipt import ItemRecord, Receipt

from .item_extractor import round_to_cents


def format_price(value: Decimal) -> str:
    """Two-decimal amount text, rounded half away from zero."""
    return f"{round_to_cents(value):.2f}"


def _format_quantity(value: Decimal) -> str:
    """Plain decimal notation without trailing zeros ("2", "1.5")."""
    if value == value.to_integral_value():
        return f"{value.to_integral_value():f}"
    return f"{value.normalize():f}"


def _format_item_json(item: ItemRecord, indent: str) -> str:
    unit_price = "null" if item.unit_price is None else format_price(item.unit_price)
    fields = [
        f'"label": {json.dumps(item.label, ensure_ascii=False)}',
        f'"quantity": {_format_quantity(item.quantity)}',
        f'"unitPrice": {unit_price}',
        f'"totalPrice": {format_price(item.total_price)}',
    ]
    inner = f",\n{indent}  ".join(fields)
    return f"{indent}{{\n{indent}  {inner}\n{indent}}}"


def items_to_json(items: Sequence[ItemRecord]) -> str:
    """
    Serialize items in the canonical ``{"items": [...]}`` shape.

    Prices always carry two decimals and an undefined unit price is written as
    null. The output is itself accepted by the response normalizer.

    Args:
        items: Item records to serialize

    Returns:
        Pretty-printed JSON text
    """
    if not items:
        return '{\n  "items": []\n}'
    body = ",\n".join(_format_item_json(item, "    ") for item in items)
    return f'{{\n  "items": [\n{body}\n  ]\n}}'


def format_currency(value: Decimal) -> str:
    """Format an amount as dollars, e.g. ``$12.99`` or ``-$1.00``."""
    sign = "-" if value < 0 else ""
    return f"{sign}${format_price(abs(value))}"


def format_item_detail(item: ItemRecord) -> str:
    """Quantity and unit price hint shown next to an item, e.g. ``Qty: 2 (@ $2.50)``."""
    details: list[str] = []
    if item.quantity != 1:
        details.append(f"Qty: {_format_quantity(item.quantity)}")
    if item.unit_price is not None:
        details.append(f"(@ {format_currency(item.unit_price)})")
    return " ".join(details)


def format_item_line(index: int, item: ItemRecord) -> str:
    """One numbered item line with selection marker for terminal listings."""
    marker = "[x]" if item.selected else "[ ]"
    detail = format_item_detail(item)
    detail_str = f"  {detail}" if detail else ""
    return f"{marker} {index}. {item.label} - {format_currency(item.total_price)}{detail_str}"


def format_receipt(receipt: Receipt) -> str:
    """Multi-line overview of a receipt with every item and both totals."""
    lines = [
        f"Receipt {receipt.receipt_id} ({receipt.source})",
        f"Scanned: {receipt.timestamp.isoformat(timespec='seconds')}",
        f"Items ({len(receipt.items)}):",
    ]
    lines.extend(f"  {format_item_line(i, item)}" for i, item in enumerate(receipt.items, 1))
    lines.append(f"Receipt Total: {format_currency(receipt.total)}")
    lines.append(f"Your Total: {format_currency(receipt.selected_total)}")
    return "\n".join(lines)


def format_bill_summary(receipt: Receipt) -> str:
    """Shareable summary of the selected items and their total."""
    text = "My Bill\n\n"
    for item in receipt.selected_items:
        text += f"{item.label}: {format_currency(item.total_price)}\n"
    text += f"\nTotal: {format_currency(receipt.selected_total)}"
    return text
