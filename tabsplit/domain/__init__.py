"""Core domain models for tabsplit.

This module provides the data models shared by every layer:
- ItemRecord: one purchased line item
- Receipt: the assembled result of one scan

Usage:
    from tabsplit.domain import ItemRecord, Receipt
"""

from tabsplit.domain.receipt import ItemRecord, Receipt, ReceiptSource

__all__ = [
    "ItemRecord",
    "Receipt",
    "ReceiptSource",
]
