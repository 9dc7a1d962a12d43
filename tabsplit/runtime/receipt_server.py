"""FastAPI server for receiving receipt images and raw receipt text."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from tabsplit.domain.receipt import ItemRecord, Receipt
from tabsplit.receipt.assembler import receipt_from_model_response, receipt_from_ocr_lines
from tabsplit.receipt.formatter import format_price
from tabsplit.receipt.ocr_helpers import encode_image_data
from tabsplit.runtime import get_logger, get_paths, load_settings
from tabsplit.runtime.receipt_pipeline import OCRServiceUnavailable, call_ocr_service_async
from tabsplit.runtime.receipt_storage import save_receipt

logger = get_logger(__name__)


class LinesRequest(BaseModel):
    lines: list[str]


class ResponseRequest(BaseModel):
    text: str


def _item_payload(item: ItemRecord) -> dict[str, Any]:
    return {
        "label": item.label,
        "quantity": str(item.quantity),
        "unitPrice": None if item.unit_price is None else format_price(item.unit_price),
        "totalPrice": format_price(item.total_price),
        "selected": item.selected,
    }


def _receipt_payload(receipt: Receipt) -> dict[str, Any]:
    return {
        "receipt_id": receipt.receipt_id,
        "timestamp": receipt.timestamp.isoformat(),
        "source": receipt.source,
        "items": [_item_payload(item) for item in receipt.items],
        "total": format_price(receipt.total),
        "selected_total": format_price(receipt.selected_total),
    }


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create receipts directories on startup."""
    get_paths().ensure_receipt_directories()
    yield


app = FastAPI(title="Receipt Splitter", lifespan=lifespan)


@app.post("/upload")
async def upload_receipt(request: Request) -> JSONResponse:
    """Receive a receipt image, OCR it, extract items and save the receipt."""
    form = await request.form()

    file = None
    for key, value in form.items():
        logger.debug(f"Form field: key={repr(key)}, type={type(value)}")
        if hasattr(value, "read"):
            file = value
            break

    if not file:
        return JSONResponse({"status": "error", "message": "No file found in request"}, status_code=400)

    contents = await file.read()
    settings = load_settings()

    try:
        image_data = encode_image_data(contents, quality=settings.storage.jpeg_quality)
    except OSError as e:
        logger.warning(f"Unreadable upload: {e}")
        return JSONResponse({"status": "error", "message": "Could not read image"}, status_code=400)

    try:
        lines = await call_ocr_service_async(
            contents,
            settings.ocr.url,
            filename=getattr(file, "filename", None) or "receipt.jpg",
            timeout=settings.ocr.timeout,
        )
    except OCRServiceUnavailable as e:
        logger.error(f"OCR service unavailable: {e}")
        return JSONResponse({"status": "error", "message": "OCR service unavailable"}, status_code=502)

    receipt = receipt_from_ocr_lines(lines, image_data=image_data, keywords=settings.classifier.extra_keywords)
    if not receipt.items:
        return JSONResponse(
            {
                "status": "error",
                "message": "No items could be extracted from the receipt. Please try again with a clearer image.",
            },
            status_code=422,
        )

    output_path = save_receipt(receipt)
    logger.info(f"Saved receipt with {len(receipt.items)} items to {output_path}")
    return JSONResponse({"status": "success", "receipt": _receipt_payload(receipt)})


@app.post("/parse/lines")
async def parse_lines(body: LinesRequest) -> dict[str, Any]:
    """Run the OCR-line path on already recognized text lines."""
    receipt = receipt_from_ocr_lines(body.lines, keywords=load_settings().classifier.extra_keywords)
    return {"status": "success", "receipt": _receipt_payload(receipt)}


@app.post("/parse/response")
async def parse_response(body: ResponseRequest) -> dict[str, Any]:
    """Run the model-output path on raw model text."""
    receipt = receipt_from_model_response(body.text)
    return {"status": "success", "receipt": _receipt_payload(receipt)}


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
