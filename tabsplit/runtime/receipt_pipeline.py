"""Runtime helpers for the receipt OCR service (non-HTTP-server side)."""

import time
from typing import Any

import httpx

from tabsplit.receipt.ocr_helpers import ocr_result_to_lines, resize_image_bytes
from tabsplit.runtime.logging import get_logger

logger = get_logger(__name__)


class OCRServiceUnavailable(RuntimeError):
    """Raised when the OCR service cannot be reached or returns an error."""


def _parse_ocr_response(response: httpx.Response) -> list[str]:
    if response.status_code != 200:
        logger.error("OCR service error: %s", response.status_code)
        raise OCRServiceUnavailable(f"OCR service error: {response.status_code}")
    try:
        raw_result: dict[str, Any] = response.json()
    except ValueError as e:
        raise OCRServiceUnavailable(f"OCR service returned invalid JSON: {e}") from e
    if not isinstance(raw_result, dict):
        raise OCRServiceUnavailable("OCR service returned an unexpected payload")
    return ocr_result_to_lines(raw_result)


def call_ocr_service(
    image_bytes: bytes,
    ocr_url: str,
    *,
    filename: str = "receipt.jpg",
    timeout: float = 60.0,
    client: httpx.Client | None = None,
) -> list[str]:
    """
    Send a receipt image to the OCR service and return its text lines.

    Args:
        image_bytes: Encoded receipt photo
        ocr_url: Base URL of the OCR service
        filename: Name reported in the multipart upload
        timeout: Request timeout in seconds
        client: Optional preconfigured httpx client

    Returns:
        Recognized text lines in reading order

    Raises:
        OCRServiceUnavailable: If the service is unreachable or fails.
    """
    ocr_url = ocr_url.rstrip("/")
    logger.info("Sending receipt to OCR service at %s...", ocr_url)

    resized_bytes = resize_image_bytes(image_bytes)
    files = {"file": (filename, resized_bytes, "image/jpeg")}

    try:
        start_time = time.time()
        if client is None:
            response = httpx.post(f"{ocr_url}/ocr", files=files, timeout=timeout)
        else:
            response = client.post(f"{ocr_url}/ocr", files=files, timeout=timeout)
        logger.info("OCR service returned in %.2f seconds", time.time() - start_time)
    except httpx.RequestError as e:
        logger.error("Failed to connect to OCR service: %s", e)
        raise OCRServiceUnavailable(f"Failed to connect to OCR service: {e}") from e

    return _parse_ocr_response(response)


async def call_ocr_service_async(
    image_bytes: bytes,
    ocr_url: str,
    *,
    filename: str = "receipt.jpg",
    timeout: float = 60.0,
) -> list[str]:
    """Async variant of call_ocr_service used by the upload server."""
    ocr_url = ocr_url.rstrip("/")
    resized_bytes = resize_image_bytes(image_bytes)
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.post(
                f"{ocr_url}/ocr",
                files={"file": (filename, resized_bytes, "image/jpeg")},
            )
    except httpx.RequestError as e:
        logger.error("OCR service unavailable: %s", e)
        raise OCRServiceUnavailable(f"Failed to connect to OCR service: {e}") from e

    return _parse_ocr_response(response)
