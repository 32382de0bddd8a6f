"""
aiosqlite connections for the ledger database.

SQLite allows one writer at a time, so ledger transactions share a single
writer connection guarded by an asyncio lock and open with BEGIN IMMEDIATE.
Plain reads use a small queue of reader connections. All connections run in
autocommit mode outside explicit transactions.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from tradeledger.config import get_logger, get_settings

logger = get_logger(__name__)

_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
)


class ConnectionPool:
    """One writer connection plus `pool_size` reader connections."""

    def __init__(
        self,
        db_path: Path,
        pool_size: int = 5,
        busy_timeout: int = 30000,
    ):
        self.db_path = db_path
        self.pool_size = max(1, pool_size)
        self.busy_timeout = busy_timeout

        self._readers: asyncio.Queue[aiosqlite.Connection] = asyncio.Queue()
        self._all: list[aiosqlite.Connection] = []
        self._writer: aiosqlite.Connection | None = None
        self._write_lock = asyncio.Lock()
        self._setup_lock = asyncio.Lock()

    @property
    def ready(self) -> bool:
        return self._writer is not None

    async def _open(self) -> aiosqlite.Connection:
        conn = await aiosqlite.connect(self.db_path, isolation_level=None)
        for pragma in _PRAGMAS:
            await conn.execute(pragma)
        await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout}")
        conn.row_factory = aiosqlite.Row
        self._all.append(conn)
        return conn

    async def initialize(self) -> None:
        async with self._setup_lock:
            if self.ready:
                return
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            writer = await self._open()
            for _ in range(self.pool_size):
                self._readers.put_nowait(await self._open())
            self._writer = writer
            logger.info(
                "ledger_db_opened",
                db_path=str(self.db_path),
                readers=self.pool_size,
            )

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[aiosqlite.Connection]:
        """Borrow a reader connection for statements outside a transaction."""
        if not self.ready:
            await self.initialize()
        conn = await self._readers.get()
        try:
            yield conn
        finally:
            self._readers.put_nowait(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """
        Hold the writer connection inside BEGIN IMMEDIATE.

        Commits when the block exits cleanly, otherwise rolls back and
        re-raises. Concurrent callers in this process queue on the lock.
        """
        if not self.ready:
            await self.initialize()
        async with self._write_lock:
            conn = self._writer
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                await conn.execute("ROLLBACK")
                raise
            await conn.execute("COMMIT")

    async def close(self) -> None:
        async with self._setup_lock:
            for conn in self._all:
                await conn.close()
            self._all.clear()
            self._readers = asyncio.Queue()
            self._writer = None
            logger.info("ledger_db_closed", db_path=str(self.db_path))


_pool: ConnectionPool | None = None


async def get_pool() -> ConnectionPool:
    """Process-wide pool built from storage settings."""
    global _pool
    if _pool is None:
        storage = get_settings().storage
        _pool = ConnectionPool(
            db_path=storage.db_path,
            pool_size=storage.pool_size,
            busy_timeout=storage.busy_timeout,
        )
        await _pool.initialize()
    return _pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None
