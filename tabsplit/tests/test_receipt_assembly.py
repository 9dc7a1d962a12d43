"""Tests for receipt assembly, derived totals and item selection."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from tabsplit.domain.receipt import ItemRecord, Receipt
from tabsplit.receipt.assembler import assemble, receipt_from_model_response, receipt_from_ocr_lines


def _items() -> list[ItemRecord]:
    return [
        ItemRecord(label="Burger", total_price=Decimal("12.99"), unit_price=Decimal("12.99")),
        ItemRecord(label="Fries", quantity=Decimal("2"), unit_price=Decimal("2.50"), total_price=Decimal("5.00")),
        ItemRecord(label="Soda", total_price=Decimal("2.99"), selected=True),
    ]


def test_assemble_empty_items_has_zero_totals() -> None:
    receipt = assemble([], raw_text="")

    assert receipt.items == ()
    assert receipt.total == 0
    assert receipt.selected_total == 0


def test_assemble_copies_inputs_and_resets_selection() -> None:
    items = _items()

    receipt = assemble(items, raw_text="raw", image_data=b"\xff\xd8")

    assert [item.label for item in receipt.items] == ["Burger", "Fries", "Soda"]
    assert all(item.selected is False for item in receipt.items)
    assert items[2].selected is True
    assert receipt.items[0] is not items[0]
    assert receipt.raw_text == "raw"
    assert receipt.image_data == b"\xff\xd8"
    assert receipt.source == "ocr"


def test_assemble_sets_utc_timestamp() -> None:
    before = datetime.now(timezone.utc)
    receipt = assemble(_items(), raw_text="")
    after = datetime.now(timezone.utc)

    assert before <= receipt.timestamp <= after


def test_receipt_timestamp_and_id_are_write_once() -> None:
    receipt = assemble(_items(), raw_text="")

    with pytest.raises(AttributeError):
        receipt.timestamp = datetime.now(timezone.utc)
    with pytest.raises(AttributeError):
        receipt.receipt_id = "other"


def test_receipt_totals_follow_selection() -> None:
    receipt = assemble(_items(), raw_text="")

    assert receipt.total == Decimal("20.98")
    assert receipt.selected_total == Decimal("0")

    receipt.select(0)
    assert receipt.toggle(2) is True
    assert receipt.selected_total == Decimal("15.98")
    assert [item.label for item in receipt.selected_items] == ["Burger", "Soda"]

    receipt.select(0, selected=False)
    assert receipt.selected_total == Decimal("2.99")
    assert receipt.total == Decimal("20.98")


def test_receipt_select_all_and_deselect_all() -> None:
    receipt = assemble(_items(), raw_text="")

    receipt.select_all()
    assert receipt.selected_total == receipt.total

    receipt.deselect_all()
    assert receipt.selected_total == 0


def test_receipt_select_out_of_range_raises_index_error() -> None:
    receipt = assemble(_items(), raw_text="")

    with pytest.raises(IndexError):
        receipt.select(3)


def test_receipt_rejects_negative_item_index() -> None:
    receipt = assemble(_items(), raw_text="")

    with pytest.raises(IndexError):
        receipt.select(-1)
    with pytest.raises(IndexError):
        receipt.toggle(-1)
    assert receipt.selected_items == []


def test_receipt_items_sequence_is_immutable() -> None:
    receipt = Receipt(items=_items(), raw_text="")

    assert isinstance(receipt.items, tuple)


def test_receipt_from_ocr_lines_keeps_raw_text() -> None:
    lines = ["2 Coffee 6.00", "TAX 0.50", "1 Muffin 3.25"]

    receipt = receipt_from_ocr_lines(lines)

    assert receipt.raw_text == "2 Coffee 6.00\nTAX 0.50\n1 Muffin 3.25"
    assert [item.label for item in receipt.items] == ["Coffee", "Muffin"]
    assert receipt.total == Decimal("9.25")


def test_receipt_from_model_response_marks_source() -> None:
    raw = 'Items: [{"label": "Tea", "quantity": 1, "unitPrice": 2.00, "totalPrice": 2.00}]'

    receipt = receipt_from_model_response(raw)

    assert receipt.source == "model"
    assert receipt.raw_text == raw
    assert [item.label for item in receipt.items] == ["Tea"]


def test_receipt_from_unusable_model_response_is_empty_receipt() -> None:
    receipt = receipt_from_model_response("Sorry, I can't read that.")

    assert receipt.items == ()
    assert receipt.total == 0
