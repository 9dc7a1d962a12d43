"""Storage and retrieval of scanned receipts.

Directory structure:
    receipts/
    ├── scanned/   - One <receipt_id>.json per assembled receipt
    └── images/    - <receipt_id>.jpg photo, when the scan had one

Amounts are stored as decimal strings so they load back exactly.
"""

import json
from datetime import datetime
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

from tabsplit.domain.receipt import ItemRecord, Receipt
from tabsplit.runtime.logging import get_logger
from tabsplit.runtime.paths import ProjectPaths, get_paths

logger = get_logger(__name__)


class ReceiptNotFound(LookupError):
    """Raised when no stored receipt has the requested id."""


class ReceiptStorageError(ValueError):
    """Raised when a stored receipt file cannot be decoded."""


def _item_to_dict(item: ItemRecord) -> dict[str, Any]:
    return {
        "label": item.label,
        "quantity": str(item.quantity),
        "unitPrice": None if item.unit_price is None else str(item.unit_price),
        "totalPrice": str(item.total_price),
        "selected": item.selected,
    }


def receipt_to_dict(receipt: Receipt, image_filename: str | None = None) -> dict[str, Any]:
    """Serialize a receipt (without image bytes) to a JSON-compatible dict."""
    return {
        "receipt_id": receipt.receipt_id,
        "timestamp": receipt.timestamp.isoformat(),
        "source": receipt.source,
        "raw_text": receipt.raw_text,
        "image_filename": image_filename,
        "items": [_item_to_dict(item) for item in receipt.items],
    }


def _item_from_dict(data: dict[str, Any]) -> ItemRecord:
    unit_price = data.get("unitPrice")
    return ItemRecord(
        label=str(data["label"]),
        quantity=Decimal(data["quantity"]),
        unit_price=None if unit_price is None else Decimal(unit_price),
        total_price=Decimal(data["totalPrice"]),
        selected=bool(data.get("selected", False)),
    )


def receipt_from_dict(data: dict[str, Any], image_data: bytes | None = None) -> Receipt:
    """
    Rebuild a receipt from receipt_to_dict() output.

    Raises:
        ReceiptStorageError: If required fields are missing or malformed.
    """
    try:
        return Receipt(
            items=tuple(_item_from_dict(item) for item in data["items"]),
            raw_text=str(data["raw_text"]),
            image_data=image_data,
            timestamp=datetime.fromisoformat(data["timestamp"]),
            source=data.get("source", "ocr"),
            receipt_id=str(data["receipt_id"]),
        )
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise ReceiptStorageError(f"Malformed receipt data: {e}") from e


def save_receipt(receipt: Receipt, paths: ProjectPaths | None = None) -> Path:
    """
    Save a receipt (and its image, if any) under receipts/scanned/.

    Saving again overwrites the same file, which is how selection changes
    are persisted.

    Returns:
        Path to the written JSON file
    """
    paths = paths or get_paths()
    paths.ensure_receipt_directories()

    image_filename = None
    if receipt.image_data is not None:
        image_filename = f"{receipt.receipt_id}.jpg"
        (paths.receipts_images / image_filename).write_bytes(receipt.image_data)

    output_path = paths.receipts_scanned / f"{receipt.receipt_id}.json"
    output_path.write_text(json.dumps(receipt_to_dict(receipt, image_filename), indent=2, ensure_ascii=False))
    logger.debug("Receipt saved to: %s", output_path)
    return output_path


def load_receipt(receipt_id: str, paths: ProjectPaths | None = None) -> Receipt:
    """
    Load a stored receipt by id.

    Raises:
        ReceiptNotFound: If there is no stored receipt with that id.
        ReceiptStorageError: If the stored file is not a valid receipt.
    """
    paths = paths or get_paths()
    receipt_path = paths.receipts_scanned / f"{receipt_id}.json"
    if not receipt_path.exists():
        raise ReceiptNotFound(f"Receipt not found: {receipt_id}")

    try:
        data = json.loads(receipt_path.read_text())
    except ValueError as e:
        raise ReceiptStorageError(f"Invalid JSON in {receipt_path}: {e}") from e
    if not isinstance(data, dict):
        raise ReceiptStorageError(f"Unexpected content in {receipt_path}")

    image_data = None
    image_filename = data.get("image_filename")
    if image_filename:
        image_path = paths.receipts_images / image_filename
        if image_path.exists():
            image_data = image_path.read_bytes()
        else:
            logger.warning("Image for receipt %s is missing: %s", receipt_id, image_path)

    return receipt_from_dict(data, image_data=image_data)


def list_receipts(paths: ProjectPaths | None = None) -> list[Receipt]:
    """List stored receipts, newest first. Unreadable files are skipped with a warning."""
    paths = paths or get_paths()
    if not paths.receipts_scanned.exists():
        return []

    receipts: list[Receipt] = []
    for receipt_path in paths.receipts_scanned.glob("*.json"):
        try:
            receipts.append(load_receipt(receipt_path.stem, paths))
        except ReceiptStorageError as e:
            logger.warning("Skipping %s: %s", receipt_path.name, e)
    receipts.sort(key=lambda r: r.timestamp, reverse=True)
    return receipts
