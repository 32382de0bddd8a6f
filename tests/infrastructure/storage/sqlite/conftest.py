"""SQLite fixtures: a migrated database per test."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest

from tradeledger.infrastructure.storage.sqlite import ConnectionPool, SQLiteRecordStore
from tradeledger.infrastructure.storage.sqlite.migrations import initialize_database


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "ledger.db"


@pytest.fixture
async def store(db_path: Path) -> AsyncGenerator[SQLiteRecordStore, None]:
    """A SQLiteRecordStore over a freshly migrated database."""
    await initialize_database(db_path, create_backup_before=False)
    pool = ConnectionPool(db_path, pool_size=2)
    await pool.initialize()
    yield SQLiteRecordStore(pool)
    await pool.close()
