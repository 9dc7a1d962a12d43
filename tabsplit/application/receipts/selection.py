"""Item selection workflow for stored receipts."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal

from tabsplit.runtime.receipt_storage import ReceiptNotFound, ReceiptStorageError, load_receipt, save_receipt

if TYPE_CHECKING:
    from tabsplit.domain.receipt import Receipt

SelectionMode = Literal["toggle", "all", "none"]
SelectionStatus = Literal["receipt_not_found", "receipt_unreadable", "invalid_index", "updated"]


@dataclass(frozen=True)
class SelectItemsRequest:
    """Inputs for changing which items on a stored receipt are selected.

    Indexes are 1-based, matching the numbered item listing. Repeated indexes
    toggle their item once.
    """

    receipt_id: str
    indexes: Sequence[int] = field(default_factory=tuple)
    mode: SelectionMode = "toggle"


@dataclass(frozen=True)
class SelectItemsResult:
    status: SelectionStatus
    receipt: Receipt | None = None
    error: str | None = None


def run_select_items(request: SelectItemsRequest) -> SelectItemsResult:
    """Apply a selection change and persist the receipt."""
    try:
        receipt = load_receipt(request.receipt_id)
    except ReceiptNotFound as exc:
        return SelectItemsResult(status="receipt_not_found", error=str(exc))
    except ReceiptStorageError as exc:
        return SelectItemsResult(status="receipt_unreadable", error=str(exc))

    if request.mode == "all":
        receipt.select_all()
    elif request.mode == "none":
        receipt.deselect_all()
    else:
        indexes = list(dict.fromkeys(request.indexes))
        bad = [i for i in indexes if not 1 <= i <= len(receipt.items)]
        if bad:
            return SelectItemsResult(
                status="invalid_index",
                receipt=receipt,
                error=f"No item number(s) {', '.join(map(str, bad))} (receipt has {len(receipt.items)} items)",
            )
        for index in indexes:
            receipt.toggle(index - 1)

    save_receipt(receipt)
    return SelectItemsResult(status="updated", receipt=receipt)
