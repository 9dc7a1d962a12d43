"""Recover item records from loosely structured model output.

The local model is asked for ``{"items": [...]}`` but routinely wraps it in
prose or markdown fences, returns a bare array, or nests the object inside an
array. Decoding is an ordered list of strategies; each returns a
``DecodeResult`` and the first success wins. When every strategy fails the
result is an empty item list. Nothing raised while decoding leaves this module.
"""

import json
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from tabsplit.domain.receipt import ItemRecord

from .item_extractor import is_supported_amount

logger = logging.getLogger(__name__)


class ItemDecodeError(ValueError):
    """A JSON value does not have the item record shape."""


@dataclass(frozen=True)
class DecodeResult:
    """Outcome of one decode strategy."""

    ok: bool
    items: list[ItemRecord] = field(default_factory=list)
    reason: str = ""

    @classmethod
    def success(cls, items: list[ItemRecord]) -> "DecodeResult":
        return cls(ok=True, items=items)

    @classmethod
    def failure(cls, reason: str) -> "DecodeResult":
        return cls(ok=False, reason=reason)


def _load_json(text: str) -> Any:
    # Decimal keeps prices exact; ints become Decimal too so every number has one type.
    return json.loads(text, parse_float=Decimal, parse_int=Decimal)


def _as_number(key: str, value: Any) -> Decimal:
    if not isinstance(value, Decimal) or not value.is_finite():
        raise ItemDecodeError(f"{key!r} is not a number: {value!r}")
    if value < 0:
        raise ItemDecodeError(f"negative {key!r}: {value}")
    if not is_supported_amount(value):
        raise ItemDecodeError(f"{key!r} is out of range: {value}")
    return value


def _required_number(record: dict[str, Any], key: str) -> Decimal:
    if key not in record:
        raise ItemDecodeError(f"missing {key!r}")
    return _as_number(key, record[key])


def _optional_number(record: dict[str, Any], key: str) -> Decimal | None:
    value = record.get(key)
    if value is None:
        return None
    return _as_number(key, value)


def _decode_item(record: Any) -> ItemRecord:
    if not isinstance(record, dict):
        raise ItemDecodeError(f"item is not an object: {record!r}")

    label = record.get("label")
    if not isinstance(label, str):
        raise ItemDecodeError(f"'label' is not a string: {label!r}")
    label = label.strip()
    if not label:
        raise ItemDecodeError("empty 'label'")

    total_price = _required_number(record, "totalPrice")
    quantity = _optional_number(record, "quantity")
    unit_price = _optional_number(record, "unitPrice")

    return ItemRecord(
        label=label,
        quantity=Decimal("1") if quantity is None else quantity,
        unit_price=unit_price,
        total_price=total_price,
    )


def decode_items(value: Any) -> list[ItemRecord]:
    """Decode a JSON array of item records, all or nothing.

    Raises:
        ItemDecodeError: If ``value`` is not an array or any element is malformed.
    """
    if not isinstance(value, list):
        raise ItemDecodeError(f"expected an array, got {type(value).__name__}")
    return [_decode_item(record) for record in value]


def decode_envelope(value: Any) -> list[ItemRecord]:
    """Decode ``{"items": [...]}``.

    Raises:
        ItemDecodeError: If ``value`` is not an object with a valid ``items`` array.
    """
    if not isinstance(value, dict):
        raise ItemDecodeError(f"expected an object, got {type(value).__name__}")
    if "items" not in value:
        raise ItemDecodeError("missing 'items'")
    return decode_items(value["items"])


def _bracketed_span(raw: str) -> str | None:
    """Return raw[first '[' : last ']'] inclusive, or None if there is no such span."""
    start = raw.find("[")
    end = raw.rfind("]")
    if start == -1 or end == -1 or start >= end:
        return None
    return raw[start : end + 1]


def _attempt(decoder: Callable[[Any], list[ItemRecord]], text: str) -> DecodeResult:
    try:
        value = _load_json(text)
    except (ValueError, RecursionError) as exc:
        return DecodeResult.failure(f"invalid JSON: {exc}")
    try:
        return DecodeResult.success(decoder(value))
    except ItemDecodeError as exc:
        return DecodeResult.failure(str(exc))


def _decode_whole_envelope(raw: str) -> DecodeResult:
    return _attempt(decode_envelope, raw)


def _decode_bracketed_array(raw: str) -> DecodeResult:
    span = _bracketed_span(raw)
    if span is None:
        return DecodeResult.failure("no [...] span")
    return _attempt(decode_items, span)


def _unwrap_envelope(value: Any) -> list[ItemRecord]:
    # The model sometimes returns [{"items": [...]}].
    if isinstance(value, list) and len(value) == 1:
        value = value[0]
    return decode_envelope(value)


def _decode_bracketed_envelope(raw: str) -> DecodeResult:
    span = _bracketed_span(raw)
    if span is None:
        return DecodeResult.failure("no [...] span")
    return _attempt(_unwrap_envelope, span)


DecodeStrategy = Callable[[str], DecodeResult]

DECODE_STRATEGIES: tuple[tuple[str, DecodeStrategy], ...] = (
    ("envelope", _decode_whole_envelope),
    ("bracketed_array", _decode_bracketed_array),
    ("bracketed_envelope", _decode_bracketed_envelope),
)


def normalize(raw: str) -> list[ItemRecord]:
    """
    Decode model output into item records, trying each strategy in order.

    Args:
        raw: Model output that should contain the items JSON somewhere

    Returns:
        Decoded items, or an empty list if no strategy succeeds
    """
    if not isinstance(raw, str):
        logger.warning("Model response is not text (%s); no items decoded", type(raw).__name__)
        return []

    for name, strategy in DECODE_STRATEGIES:
        result = strategy(raw)
        if result.ok:
            logger.debug("Decoded %d item(s) with %s strategy", len(result.items), name)
            return result.items
        logger.debug("Decode strategy %s failed: %s", name, result.reason)

    logger.warning("Could not decode any items from model response (%d chars)", len(raw))
    return []
