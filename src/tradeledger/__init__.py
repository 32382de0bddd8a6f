"""TradeLedger: invoice, stock and balance reconciliation service."""

__version__ = "1.0.0"
