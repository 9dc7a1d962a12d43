"""Pure receipt text processing: classify, extract, normalize, assemble."""

from tabsplit.receipt.assembler import (
    assemble,
    extract_items_from_lines,
    receipt_from_model_response,
    receipt_from_ocr_lines,
)
from tabsplit.receipt.formatter import format_bill_summary, items_to_json
from tabsplit.receipt.item_extractor import extract
from tabsplit.receipt.line_classifier import classify
from tabsplit.receipt.response_normalizer import normalize

__all__ = [
    "assemble",
    "classify",
    "extract",
    "extract_items_from_lines",
    "format_bill_summary",
    "items_to_json",
    "normalize",
    "receipt_from_model_response",
    "receipt_from_ocr_lines",
]
