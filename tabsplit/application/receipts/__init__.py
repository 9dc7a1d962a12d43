"""Receipt workflows."""

from tabsplit.application.receipts.scan import ReceiptScanRequest, ReceiptScanResult, run_receipt_scan
from tabsplit.application.receipts.selection import SelectItemsRequest, SelectItemsResult, run_select_items

__all__ = [
    "ReceiptScanRequest",
    "ReceiptScanResult",
    "SelectItemsRequest",
    "SelectItemsResult",
    "run_receipt_scan",
    "run_select_items",
]
