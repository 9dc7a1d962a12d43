"""Data models for receipt scanning."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Literal

ReceiptSource = Literal["ocr", "model"]


@dataclass
class ItemRecord:
    """A single purchased line item on a receipt."""

    label: str
    total_price: Decimal
    quantity: Decimal = Decimal("1")
    unit_price: Decimal | None = None
    # Toggled by the user after extraction; parsing never sets it.
    selected: bool = False


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_receipt_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Receipt:
    """A scanned receipt and the items extracted from it.

    The item sequence is fixed once the receipt is assembled. Only the
    ``selected`` flag of individual items changes afterwards, through the
    selection methods below.
    """

    items: tuple[ItemRecord, ...]
    raw_text: str
    image_data: bytes | None = None
    timestamp: datetime = field(default_factory=_utcnow)
    source: ReceiptSource = "ocr"
    receipt_id: str = field(default_factory=_new_receipt_id)

    def __post_init__(self) -> None:
        self.items = tuple(self.items)

    def __setattr__(self, name: str, value: object) -> None:
        # timestamp and receipt_id are write-once.
        if name in ("timestamp", "receipt_id") and name in self.__dict__:
            raise AttributeError(f"Receipt.{name} cannot be changed after creation")
        super().__setattr__(name, value)

    @property
    def total(self) -> Decimal:
        return sum((item.total_price for item in self.items), Decimal("0"))

    @property
    def selected_items(self) -> list[ItemRecord]:
        return [item for item in self.items if item.selected]

    @property
    def selected_total(self) -> Decimal:
        return sum((item.total_price for item in self.selected_items), Decimal("0"))

    def _item_at(self, index: int) -> ItemRecord:
        # Negative indexes are rejected rather than counted from the end.
        if not 0 <= index < len(self.items):
            raise IndexError(f"item index {index} out of range (receipt has {len(self.items)} items)")
        return self.items[index]

    def select(self, index: int, selected: bool = True) -> None:
        """Set the selection flag of the item at ``index``.

        Raises:
            IndexError: If ``index`` is outside ``0 .. len(items) - 1``.
        """
        self._item_at(index).selected = selected

    def toggle(self, index: int) -> bool:
        """Flip the selection flag of one item and return its new value."""
        item = self._item_at(index)
        item.selected = not item.selected
        return item.selected

    def select_all(self) -> None:
        for item in self.items:
            item.selected = True

    def deselect_all(self) -> None:
        for item in self.items:
            item.selected = False
