"""SQLite storage implementation."""

from tradeledger.infrastructure.storage.sqlite.connection import (
    ConnectionPool,
    close_pool,
    get_pool,
)
from tradeledger.infrastructure.storage.sqlite.record_store import SQLiteRecordStore

__all__ = [
    "ConnectionPool",
    "SQLiteRecordStore",
    "close_pool",
    "get_pool",
]
