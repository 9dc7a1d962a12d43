"""Client for the local language model service (llama.cpp-compatible /completion)."""

from __future__ import annotations

import httpx

from tabsplit.runtime.logging import get_logger
from tabsplit.runtime.settings import ModelSettings

logger = get_logger(__name__)

SYSTEM_PROMPT = "You are a helpful AI assistant specialized in processing receipts."

# Leave room for the prompt itself in a small local context window
MAX_RECEIPT_TEXT_CHARS = 4000


class ModelServiceUnavailable(RuntimeError):
    """Raised when the model service cannot be reached or returns an error."""


def build_extraction_prompt(receipt_text: str) -> str:
    """Build the item extraction prompt for the given OCR text."""
    text_sample = receipt_text[:MAX_RECEIPT_TEXT_CHARS]
    return f"""{SYSTEM_PROMPT}

Extract all items and their corresponding prices from the following receipt text.
Only include actual items purchased, not subtotals, taxes, or totals.

Return ONLY a JSON object (no markdown, no explanation) of this shape:
{{"items": [{{"label": "Item name", "quantity": 1, "unitPrice": 2.50, "totalPrice": 2.50}}]}}

Use null for unitPrice when it is unknown. Prices use a decimal point.

Receipt text:
{text_sample}

JSON response:
"""


def _response_text(response: httpx.Response) -> str:
    if response.status_code != 200:
        logger.error("Model service error: %s", response.status_code)
        raise ModelServiceUnavailable(f"Model service error: {response.status_code}")
    try:
        payload = response.json()
    except ValueError as e:
        raise ModelServiceUnavailable(f"Model service returned invalid JSON: {e}") from e

    content = payload.get("content") if isinstance(payload, dict) else None
    if not isinstance(content, str):
        raise ModelServiceUnavailable("Model service response has no 'content' text")
    return content


def request_items_completion(
    receipt_text: str,
    settings: ModelSettings,
    *,
    client: httpx.Client | None = None,
) -> str:
    """
    Ask the model to summarize receipt text as items JSON.

    The returned text is untrusted; pass it to the response normalizer.

    Args:
        receipt_text: OCR text of the receipt
        settings: Model service URL, timeout and sampling settings
        client: Optional preconfigured httpx client

    Returns:
        Raw model output

    Raises:
        ModelServiceUnavailable: If the service is unreachable or fails.
    """
    url = f"{settings.url.rstrip('/')}/completion"
    body = {
        "prompt": build_extraction_prompt(receipt_text),
        "n_predict": settings.n_predict,
        "temperature": settings.temperature,
    }
    logger.info("Requesting item extraction from model service at %s...", settings.url)

    try:
        if client is None:
            response = httpx.post(url, json=body, timeout=settings.timeout)
        else:
            response = client.post(url, json=body, timeout=settings.timeout)
    except httpx.RequestError as e:
        logger.error("Failed to connect to model service: %s", e)
        raise ModelServiceUnavailable(f"Failed to connect to model service: {e}") from e

    text = _response_text(response)
    logger.debug("Model response: %s", text)
    return text
