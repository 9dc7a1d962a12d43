"""tabsplit: extract line items from receipt photos and split the bill."""

__version__ = "0.1.0"
