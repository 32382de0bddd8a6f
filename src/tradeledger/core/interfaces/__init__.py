"""Core interfaces (abstract base classes)."""

from tradeledger.core.interfaces.record_store import IRecordStore, Row

__all__ = [
    "IRecordStore",
    "Row",
]
