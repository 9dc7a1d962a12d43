"""Text-line based receipt item extraction."""

import logging
import re
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal, DecimalException, InvalidOperation

from tabsplit.domain.receipt import ItemRecord

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# Amounts and quantities at or above this are OCR noise, not purchases.
MAX_AMOUNT = Decimal("1e12")

# "<quantity> <label> [$]<price>", e.g. "2 Coffee 6.00" or "1.5 Bananas $2.97"
ITEM_LINE_PATTERN = re.compile(r"^(\d+(?:\.\d+)?)\s+(.+?)\s+\$?(\d+\.\d{2})$")


def round_to_cents(value: Decimal) -> Decimal:
    """Round half away from zero to two decimal places."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def is_supported_amount(value: Decimal) -> bool:
    """True for finite values small enough to round to cents exactly."""
    return value.is_finite() and abs(value) < MAX_AMOUNT


def derive_unit_price(total_price: Decimal, quantity: Decimal) -> Decimal | None:
    """Return total_price / quantity in cents, or None when quantity is not positive
    or the quotient is out of range."""
    if quantity <= 0:
        return None
    try:
        unit_price = total_price / quantity
    except DecimalException:
        return None
    if not is_supported_amount(unit_price):
        return None
    return round_to_cents(unit_price)


def _parse_item_line(line: str) -> ItemRecord | None:
    match = ITEM_LINE_PATTERN.match(line.strip())
    if match is None:
        logger.debug("No item match for line: %r", line)
        return None

    quantity_text, label, price_text = match.groups()
    try:
        quantity = Decimal(quantity_text)
        total_price = Decimal(price_text)
    except InvalidOperation:
        logger.debug("Could not parse quantity/price for line: %r", line)
        return None

    if not (is_supported_amount(quantity) and is_supported_amount(total_price)):
        logger.debug("Quantity or price out of range for line: %r", line)
        return None

    label = label.strip()
    if not label:
        return None

    return ItemRecord(
        label=label,
        quantity=quantity,
        unit_price=derive_unit_price(total_price, quantity),
        total_price=total_price,
    )


def extract(candidate_lines: Sequence[str]) -> list[ItemRecord]:
    """
    Extract item records from candidate lines.

    Lines that don't have the "<quantity> <label> <price>" shape contribute
    nothing; receipts vary in layout, so that is not an error.

    Args:
        candidate_lines: Lines kept by the line classifier

    Returns:
        One ItemRecord per matching line, in input order
    """
    items: list[ItemRecord] = []
    for line in candidate_lines:
        item = _parse_item_line(line)
        if item is not None:
            logger.debug("Parsed item: %s x%s = %s", item.label, item.quantity, item.total_price)
            items.append(item)
    return items
