"""Receipt scan workflow orchestration."""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from tabsplit.receipt.assembler import receipt_from_model_response, receipt_from_ocr_lines
from tabsplit.receipt.ocr_helpers import encode_image_data
from tabsplit.runtime import get_logger, load_settings
from tabsplit.runtime.model_client import ModelServiceUnavailable, request_items_completion
from tabsplit.runtime.receipt_pipeline import OCRServiceUnavailable, call_ocr_service
from tabsplit.runtime.receipt_storage import save_receipt

if TYPE_CHECKING:
    from tabsplit.domain.receipt import Receipt
    from tabsplit.runtime.settings import Settings

logger = get_logger(__name__)

ScanStatus = Literal[
    "file_not_found",
    "image_unreadable",
    "ocr_unavailable",
    "model_unavailable",
    "no_items",
    "scanned_saved",
]


@dataclass(frozen=True)
class ReceiptScanRequest:
    """Inputs for running receipt scan workflow."""

    image_path: Path
    ocr_url: str | None = None
    model_url: str | None = None
    use_model: bool = False
    save: bool = True


@dataclass(frozen=True)
class ReceiptScanResult:
    """Outcome from receipt scan workflow."""

    status: ScanStatus
    receipt: Receipt | None = None
    saved_path: Path | None = None
    error: str | None = None


def _with_overrides(settings: Settings, request: ReceiptScanRequest) -> Settings:
    if request.ocr_url:
        settings = replace(settings, ocr=replace(settings.ocr, url=request.ocr_url))
    if request.model_url:
        settings = replace(settings, model=replace(settings.model, url=request.model_url))
    return settings


def run_receipt_scan(request: ReceiptScanRequest, settings: Settings | None = None) -> ReceiptScanResult:
    """Run scan flow: OCR -> (classify/extract | model -> normalize) -> assemble -> save."""
    if not request.image_path.exists():
        return ReceiptScanResult(
            status="file_not_found",
            error=f"Receipt file not found: {request.image_path}",
        )

    settings = _with_overrides(settings or load_settings(), request)
    image_bytes = request.image_path.read_bytes()

    try:
        image_data = encode_image_data(image_bytes, quality=settings.storage.jpeg_quality)
    except OSError as exc:
        return ReceiptScanResult(
            status="image_unreadable",
            error=f"Could not read receipt image {request.image_path}: {exc}",
        )

    try:
        lines = call_ocr_service(
            image_bytes,
            settings.ocr.url,
            filename=request.image_path.name,
            timeout=settings.ocr.timeout,
        )
    except OCRServiceUnavailable as exc:
        return ReceiptScanResult(status="ocr_unavailable", error=str(exc))

    if request.use_model:
        try:
            response_text = request_items_completion("\n".join(lines), settings.model)
        except ModelServiceUnavailable as exc:
            return ReceiptScanResult(status="model_unavailable", error=str(exc))
        receipt = receipt_from_model_response(response_text, image_data=image_data)
    else:
        receipt = receipt_from_ocr_lines(
            lines,
            image_data=image_data,
            keywords=settings.classifier.extra_keywords,
        )

    logger.info("Extracted %d item(s) from %s", len(receipt.items), request.image_path.name)

    if not receipt.items:
        return ReceiptScanResult(
            status="no_items",
            receipt=receipt,
            error="No items could be extracted from the receipt. Please try again with a clearer image.",
        )

    saved_path = save_receipt(receipt) if request.save else None
    return ReceiptScanResult(status="scanned_saved", receipt=receipt, saved_path=saved_path)
