"""Assemble extracted items into a Receipt, for both the OCR and model paths."""

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from datetime import datetime, timezone

from tabsplit.domain.receipt import ItemRecord, Receipt, ReceiptSource

from .item_extractor import extract
from .line_classifier import classify
from .response_normalizer import normalize

logger = logging.getLogger(__name__)


def assemble(
    items: Iterable[ItemRecord],
    raw_text: str,
    image_data: bytes | None = None,
    *,
    source: ReceiptSource = "ocr",
) -> Receipt:
    """
    Build the Receipt for one scan attempt.

    Items are copied with ``selected`` reset to False. An empty item list is a
    valid receipt; deciding whether that is an error is up to the caller.

    Args:
        items: Extracted item records, in source order
        raw_text: Full OCR or model text the items came from
        image_data: Optional encoded image of the receipt
        source: Which path produced the items ("ocr" or "model")
    """
    return Receipt(
        items=tuple(replace(item, selected=False) for item in items),
        raw_text=raw_text,
        image_data=image_data,
        timestamp=datetime.now(timezone.utc),
        source=source,
    )


def extract_items_from_lines(lines: Sequence[str], keywords: Iterable[str] | None = None) -> list[ItemRecord]:
    """Run the OCR path: classify lines, then extract items from the candidates."""
    candidates = classify(lines, keywords=keywords)
    items = extract(candidates)
    logger.debug("Kept %d of %d line(s); extracted %d item(s)", len(candidates), len(lines), len(items))
    return items


def receipt_from_ocr_lines(
    lines: Sequence[str],
    image_data: bytes | None = None,
    keywords: Iterable[str] | None = None,
) -> Receipt:
    """OCR lines -> classify -> extract -> Receipt."""
    items = extract_items_from_lines(lines, keywords=keywords)
    return assemble(items, "\n".join(lines), image_data, source="ocr")


def receipt_from_model_response(raw: str, image_data: bytes | None = None) -> Receipt:
    """Model output -> normalize -> Receipt."""
    return assemble(normalize(raw), raw, image_data, source="model")
