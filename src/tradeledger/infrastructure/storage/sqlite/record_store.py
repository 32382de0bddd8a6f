"""
SQLite implementation of the record store.

Builds parameterised SQL from validated table and column names. Outside a
transaction every call borrows a pooled connection; inside one, every call
runs on the connection holding the write lock.
"""

import json
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

import aiosqlite

from tradeledger.config import get_logger
from tradeledger.core.exceptions import (
    ConcurrentModificationError,
    ConflictError,
    DatabaseError,
)
from tradeledger.core.interfaces.record_store import (
    JSON_COLUMNS,
    TIMESTAMPED_TABLES,
    Filters,
    IRecordStore,
    Row,
    check_column,
    check_table,
    split_filter,
)
from tradeledger.infrastructure.storage.sqlite.connection import ConnectionPool, get_pool

logger = get_logger(__name__)

_SQL_OPERATORS = {"eq": "=", "ne": "!=", "gte": ">=", "lte": "<="}


def build_where(filters: Filters | None) -> tuple[str, list[Any]]:
    """Translate a filter mapping into a WHERE clause and parameters."""
    if not filters:
        return "", []

    clauses: list[str] = []
    params: list[Any] = []
    for key, value in filters.items():
        column, op = split_filter(key, value)
        if op == "in":
            values = list(value)
            if not values:
                clauses.append("0")
                continue
            clauses.append(f"{column} IN ({', '.join('?' for _ in values)})")
            params.extend(_encode_value(v) for v in values)
        elif op == "contains":
            clauses.append(f"LOWER({column}) LIKE ?")
            params.append(f"%{str(value).lower()}%")
        elif op == "startswith":
            clauses.append(f"substr({column}, 1, ?) = ?")
            params.extend([len(str(value)), str(value)])
        elif value is None and op in ("eq", "ne"):
            clauses.append(f"{column} IS {'NOT ' if op == 'ne' else ''}NULL")
        else:
            clauses.append(f"{column} {_SQL_OPERATORS[op]} ?")
            params.append(_encode_value(value))
    return " WHERE " + " AND ".join(clauses), params


def _encode_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _encode_row(table: str, row: Row) -> Row:
    json_columns = JSON_COLUMNS.get(table, frozenset())
    encoded = {}
    for key, value in row.items():
        check_column(key)
        if key in json_columns:
            encoded[key] = json.dumps(value if value is not None else {})
        else:
            encoded[key] = _encode_value(value)
    return encoded


def _decode_row(table: str, row: aiosqlite.Row) -> Row:
    decoded = dict(row)
    for column in JSON_COLUMNS.get(table, frozenset()):
        raw = decoded.get(column)
        if isinstance(raw, str):
            decoded[column] = json.loads(raw) if raw else {}
    return decoded


def _translate_error(operation: str, error: aiosqlite.Error) -> Exception:
    message = str(error)
    if isinstance(error, aiosqlite.IntegrityError):
        return ConflictError(f"Integrity violation during {operation}: {message}")
    if isinstance(error, aiosqlite.OperationalError) and (
        "locked" in message or "busy" in message
    ):
        return ConcurrentModificationError(operation, message)
    return DatabaseError(operation, message)


class SQLiteRecordStore(IRecordStore):
    """Record store backed by the aiosqlite pool."""

    def __init__(
        self,
        pool: ConnectionPool | None = None,
        connection: aiosqlite.Connection | None = None,
    ):
        self._pool = pool
        self._conn = connection

    async def _get_pool(self) -> ConnectionPool:
        if self._pool is None:
            self._pool = await get_pool()
        return self._pool

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[aiosqlite.Connection]:
        if self._conn is not None:
            yield self._conn
            return
        pool = await self._get_pool()
        async with pool.acquire() as conn:
            yield conn

    async def _run(
        self,
        operation: str,
        work: Callable[[aiosqlite.Connection], Any],
    ) -> Any:
        try:
            async with self._connection() as conn:
                return await work(conn)
        except aiosqlite.Error as e:
            logger.error("record_store_error", operation=operation, error=str(e))
            raise _translate_error(operation, e) from e

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SQLiteRecordStore"]:
        if self._conn is not None:
            yield self
            return
        pool = await self._get_pool()
        try:
            async with pool.transaction() as conn:
                yield SQLiteRecordStore(pool, conn)
        except aiosqlite.Error as e:
            logger.error("transaction_failed", error=str(e))
            raise _translate_error("transaction", e) from e

    async def fetch(
        self,
        table: str,
        filters: Filters | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        check_table(table)
        where, params = build_where(filters)
        sql = f"SELECT * FROM {table}{where}"
        if order_by:
            sql += f" ORDER BY {check_column(order_by)} {'DESC' if descending else 'ASC'}"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        async def work(conn: aiosqlite.Connection) -> list[Row]:
            cursor = await conn.execute(sql, params)
            rows = await cursor.fetchall()
            return [_decode_row(table, row) for row in rows]

        return await self._run(f"fetch {table}", work)

    async def insert(self, table: str, row: Row) -> Row:
        check_table(table)
        values = _encode_row(table, {k: v for k, v in row.items() if k != "id" or v is not None})
        if table in TIMESTAMPED_TABLES and not values.get("created_at"):
            values["created_at"] = datetime.now(timezone.utc).isoformat()
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        sql = f"INSERT INTO {table} ({columns}) VALUES ({placeholders})"

        async def work(conn: aiosqlite.Connection) -> Row:
            cursor = await conn.execute(sql, list(values.values()))
            row_id = cursor.lastrowid
            cursor = await conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,))
            created = await cursor.fetchone()
            return _decode_row(table, created)

        return await self._run(f"insert {table}", work)

    async def update(self, table: str, filters: Filters, patch: Row) -> int:
        check_table(table)
        if not patch:
            return 0
        values = _encode_row(table, patch)
        assignments = ", ".join(f"{column} = ?" for column in values)
        where, params = build_where(filters)
        sql = f"UPDATE {table} SET {assignments}{where}"

        async def work(conn: aiosqlite.Connection) -> int:
            cursor = await conn.execute(sql, [*values.values(), *params])
            return cursor.rowcount

        return await self._run(f"update {table}", work)

    async def delete(self, table: str, filters: Filters) -> int:
        check_table(table)
        where, params = build_where(filters)
        sql = f"DELETE FROM {table}{where}"

        async def work(conn: aiosqlite.Connection) -> int:
            cursor = await conn.execute(sql, params)
            return cursor.rowcount

        return await self._run(f"delete {table}", work)

    async def count(self, table: str, filters: Filters | None = None) -> int:
        check_table(table)
        where, params = build_where(filters)
        sql = f"SELECT COUNT(*) FROM {table}{where}"

        async def work(conn: aiosqlite.Connection) -> int:
            cursor = await conn.execute(sql, params)
            row = await cursor.fetchone()
            return row[0] if row else 0

        return await self._run(f"count {table}", work)

    async def ping(self) -> bool:
        async def work(conn: aiosqlite.Connection) -> bool:
            cursor = await conn.execute("SELECT 1")
            return (await cursor.fetchone())[0] == 1

        return await self._run("ping", work)

    async def close(self) -> None:
        if self._pool is not None and self._conn is None:
            await self._pool.close()
