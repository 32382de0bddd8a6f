"""Storage infrastructure implementations."""

from tradeledger.config import get_logger, get_settings
from tradeledger.core.interfaces.record_store import IRecordStore
from tradeledger.infrastructure.storage.memory import InMemoryRecordStore
from tradeledger.infrastructure.storage.sqlite import SQLiteRecordStore, close_pool, get_pool

logger = get_logger(__name__)

# Singleton instance
_record_store: IRecordStore | None = None


async def get_record_store() -> IRecordStore:
    """Get the singleton record store for the configured backend."""
    global _record_store
    if _record_store is None:
        backend = get_settings().storage.backend
        if backend == "memory":
            _record_store = InMemoryRecordStore()
        else:
            _record_store = SQLiteRecordStore()
        logger.info("record_store_created", backend=backend)
    return _record_store


async def close_record_store() -> None:
    global _record_store
    if _record_store is not None:
        await _record_store.close()
        _record_store = None
    await close_pool()


__all__ = [
    "InMemoryRecordStore",
    "SQLiteRecordStore",
    "close_pool",
    "close_record_store",
    "get_pool",
    "get_record_store",
]
