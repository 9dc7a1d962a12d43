"""Tests for the scan and selection workflows (service calls mocked)."""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

import pytest

from tabsplit.application.receipts import scan as scan_module
from tabsplit.application.receipts.scan import ReceiptScanRequest, run_receipt_scan
from tabsplit.application.receipts.selection import SelectItemsRequest, run_select_items
from tabsplit.receipt.assembler import receipt_from_ocr_lines
from tabsplit.runtime import ProjectPaths
from tabsplit.runtime.model_client import ModelServiceUnavailable
from tabsplit.runtime.receipt_pipeline import OCRServiceUnavailable
from tabsplit.runtime.receipt_storage import load_receipt, save_receipt

OCR_LINES = ["CORNER CAFE", "2 Coffee 6.00", "TAX 0.50", "1 Muffin 3.25", "TOTAL $9.75"]


@pytest.fixture
def image_path(tmp_path: Path, receipt_jpeg: bytes) -> Path:
    path = tmp_path / "receipt.jpg"
    path.write_bytes(receipt_jpeg)
    return path


def _fake_ocr(lines: list[str]):
    def fake(image_bytes: bytes, ocr_url: str, **kwargs: object) -> list[str]:
        return lines

    return fake


def test_scan_ocr_path_saves_receipt(
    tabsplit_home: ProjectPaths, image_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(scan_module, "call_ocr_service", _fake_ocr(OCR_LINES))

    result = run_receipt_scan(ReceiptScanRequest(image_path=image_path))

    assert result.status == "scanned_saved"
    assert result.receipt is not None
    assert [item.label for item in result.receipt.items] == ["Coffee", "Muffin"]
    assert result.receipt.raw_text == "\n".join(OCR_LINES)
    assert result.receipt.image_data is not None
    assert result.saved_path is not None and result.saved_path.exists()
    assert load_receipt(result.receipt.receipt_id).total == Decimal("9.25")


def test_scan_model_path_uses_normalizer(
    tabsplit_home: ProjectPaths, image_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    seen: dict[str, str] = {}

    def fake_completion(receipt_text: str, settings: object) -> str:
        seen["text"] = receipt_text
        return 'Here you go: [{"label": "Coffee", "quantity": 2, "unitPrice": 3.00, "totalPrice": 6.00}]'

    monkeypatch.setattr(scan_module, "call_ocr_service", _fake_ocr(OCR_LINES))
    monkeypatch.setattr(scan_module, "request_items_completion", fake_completion)

    result = run_receipt_scan(ReceiptScanRequest(image_path=image_path, use_model=True, save=False))

    assert result.status == "scanned_saved"
    assert result.saved_path is None
    assert result.receipt is not None
    assert result.receipt.source == "model"
    assert [item.label for item in result.receipt.items] == ["Coffee"]
    assert seen["text"] == "\n".join(OCR_LINES)


def test_scan_missing_file(tabsplit_home: ProjectPaths, tmp_path: Path) -> None:
    result = run_receipt_scan(ReceiptScanRequest(image_path=tmp_path / "missing.jpg"))

    assert result.status == "file_not_found"


def test_scan_unreadable_image(tabsplit_home: ProjectPaths, tmp_path: Path) -> None:
    path = tmp_path / "receipt.jpg"
    path.write_bytes(b"not an image")

    result = run_receipt_scan(ReceiptScanRequest(image_path=path))

    assert result.status == "image_unreadable"


def test_scan_ocr_unavailable(tabsplit_home: ProjectPaths, image_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing(image_bytes: bytes, ocr_url: str, **kwargs: object) -> list[str]:
        raise OCRServiceUnavailable("Failed to connect to OCR service: refused")

    monkeypatch.setattr(scan_module, "call_ocr_service", failing)

    result = run_receipt_scan(ReceiptScanRequest(image_path=image_path, ocr_url="http://elsewhere"))

    assert result.status == "ocr_unavailable"
    assert "refused" in (result.error or "")


def test_scan_model_unavailable(
    tabsplit_home: ProjectPaths, image_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    def failing(receipt_text: str, settings: object) -> str:
        raise ModelServiceUnavailable("Model service error: 503")

    monkeypatch.setattr(scan_module, "call_ocr_service", _fake_ocr(OCR_LINES))
    monkeypatch.setattr(scan_module, "request_items_completion", failing)

    result = run_receipt_scan(ReceiptScanRequest(image_path=image_path, use_model=True))

    assert result.status == "model_unavailable"


def test_scan_without_items_is_not_saved(
    tabsplit_home: ProjectPaths, image_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(scan_module, "call_ocr_service", _fake_ocr(["SUBTOTAL", "Thank you"]))

    result = run_receipt_scan(ReceiptScanRequest(image_path=image_path))

    assert result.status == "no_items"
    assert result.receipt is not None and result.receipt.items == ()
    assert not tabsplit_home.receipts_scanned.exists()


def test_scan_passes_url_override_to_ocr(
    tabsplit_home: ProjectPaths, image_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    seen: dict[str, str] = {}

    def fake(image_bytes: bytes, ocr_url: str, **kwargs: object) -> list[str]:
        seen["url"] = ocr_url
        return OCR_LINES

    monkeypatch.setattr(scan_module, "call_ocr_service", fake)

    run_receipt_scan(ReceiptScanRequest(image_path=image_path, ocr_url="http://override:1234", save=False))

    assert seen["url"] == "http://override:1234"


def test_select_items_toggles_and_persists(tabsplit_home: ProjectPaths) -> None:
    receipt = receipt_from_ocr_lines(["1 Burger 12.99", "2 Fries 5.00", "1 Soda 2.99"])
    save_receipt(receipt)

    result = run_select_items(SelectItemsRequest(receipt_id=receipt.receipt_id, indexes=[1, 3]))

    assert result.status == "updated"
    assert load_receipt(receipt.receipt_id).selected_total == Decimal("15.98")

    run_select_items(SelectItemsRequest(receipt_id=receipt.receipt_id, indexes=[3]))
    assert load_receipt(receipt.receipt_id).selected_total == Decimal("12.99")


def test_select_all_and_none(tabsplit_home: ProjectPaths) -> None:
    receipt = receipt_from_ocr_lines(["1 Burger 12.99", "2 Fries 5.00"])
    save_receipt(receipt)

    run_select_items(SelectItemsRequest(receipt_id=receipt.receipt_id, mode="all"))
    assert load_receipt(receipt.receipt_id).selected_total == Decimal("17.99")

    run_select_items(SelectItemsRequest(receipt_id=receipt.receipt_id, mode="none"))
    assert load_receipt(receipt.receipt_id).selected_total == Decimal("0")


def test_select_items_rejects_bad_index(tabsplit_home: ProjectPaths) -> None:
    receipt = receipt_from_ocr_lines(["1 Burger 12.99"])
    save_receipt(receipt)

    result = run_select_items(SelectItemsRequest(receipt_id=receipt.receipt_id, indexes=[0, 2]))

    assert result.status == "invalid_index"
    assert load_receipt(receipt.receipt_id).selected_total == Decimal("0")


def test_select_items_unknown_receipt(tabsplit_home: ProjectPaths) -> None:
    result = run_select_items(SelectItemsRequest(receipt_id="nope", indexes=[1]))

    assert result.status == "receipt_not_found"


def test_select_items_repeated_index_toggles_once(tabsplit_home: ProjectPaths) -> None:
    receipt = receipt_from_ocr_lines(["1 Burger 12.99", "2 Fries 5.00"])
    save_receipt(receipt)

    result = run_select_items(SelectItemsRequest(receipt_id=receipt.receipt_id, indexes=[1, 1]))

    assert result.status == "updated"
    assert load_receipt(receipt.receipt_id).selected_total == Decimal("12.99")


def test_select_items_unreadable_receipt(tabsplit_home: ProjectPaths) -> None:
    tabsplit_home.ensure_receipt_directories()
    (tabsplit_home.receipts_scanned / "broken.json").write_text("not json")

    result = run_select_items(SelectItemsRequest(receipt_id="broken", indexes=[1]))

    assert result.status == "receipt_unreadable"
    assert result.error
