"""In-memory storage implementation."""

from tradeledger.infrastructure.storage.memory.record_store import InMemoryRecordStore

__all__ = ["InMemoryRecordStore"]
