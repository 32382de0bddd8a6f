"""
In-process record store.

Tables are dicts of rows keyed by id. A single asyncio lock serialises
transactions and a deep copy of every table is restored if the transaction
block raises, so it behaves like the SQLite store for a single process.
"""

import asyncio
import copy
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any

from tradeledger.config import get_logger
from tradeledger.core.exceptions import ConflictError
from tradeledger.core.interfaces.record_store import (
    TABLES,
    TIMESTAMPED_TABLES,
    Filters,
    IRecordStore,
    Row,
    check_column,
    check_table,
    split_filter,
)

logger = get_logger(__name__)

# Mirrors the UNIQUE constraints of the SQL schema
UNIQUE_COLUMNS: dict[str, tuple[str, ...]] = {
    "orders": ("order_no",),
    "invoices": ("invoice_no", "order_id"),
    "rep_commissions": ("order_id",),
    "account_transactions": ("transaction_no",),
    "purchases": ("purchase_no",),
    "supplier_payments": ("payment_number",),
    "inventory_returns": ("return_number",),
    "supplier_return_batches": ("batch_number",),
    "loading_sheets": ("load_no",),
}


def _normalise(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _matches(row: Row, filters: Filters | None) -> bool:
    if not filters:
        return True
    for key, expected in filters.items():
        column, op = split_filter(key, expected)
        actual = row.get(column)
        if op == "in":
            if actual not in {_normalise(v) for v in expected}:
                return False
            continue
        expected = _normalise(expected)
        if op == "eq" and actual != expected:
            return False
        if op == "ne" and actual == expected:
            return False
        if op in ("gte", "lte"):
            if actual is None:
                return False
            if op == "gte" and not actual >= expected:
                return False
            if op == "lte" and not actual <= expected:
                return False
        if op == "contains" and (
            actual is None or str(expected).lower() not in str(actual).lower()
        ):
            return False
        if op == "startswith" and (
            actual is None or not str(actual).startswith(str(expected))
        ):
            return False
    return True


class _MemoryState:
    def __init__(self) -> None:
        self.tables: dict[str, dict[int, Row]] = {table: {} for table in TABLES}
        self.next_ids: dict[str, int] = {table: 1 for table in TABLES}
        self.lock = asyncio.Lock()


class InMemoryRecordStore(IRecordStore):
    """Record store kept in process memory."""

    def __init__(self, state: _MemoryState | None = None, bound: bool = False):
        self._state = state or _MemoryState()
        self._bound = bound

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["InMemoryRecordStore"]:
        if self._bound:
            yield self
            return
        async with self._state.lock:
            snapshot = copy.deepcopy((self._state.tables, self._state.next_ids))
            try:
                yield InMemoryRecordStore(self._state, bound=True)
            except BaseException:
                self._state.tables, self._state.next_ids = snapshot
                logger.debug("memory_transaction_rolled_back")
                raise

    async def fetch(
        self,
        table: str,
        filters: Filters | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        rows = [
            copy.deepcopy(row)
            for row in self._state.tables[check_table(table)].values()
            if _matches(row, filters)
        ]
        if order_by:
            check_column(order_by)
            present = [r for r in rows if r.get(order_by) is not None]
            missing = [r for r in rows if r.get(order_by) is None]
            present.sort(key=lambda r: r[order_by], reverse=descending)
            rows = present + missing
        if limit is not None:
            rows = rows[:limit]
        return rows

    def _check_unique(self, table: str, row: Row, row_id: int | None = None) -> None:
        for column in UNIQUE_COLUMNS.get(table, ()):
            value = row.get(column)
            if value is None:
                continue
            for existing_id, existing in self._state.tables[table].items():
                if existing_id != row_id and existing.get(column) == value:
                    raise ConflictError(
                        f"Integrity violation during insert {table}: "
                        f"{column} '{value}' already exists"
                    )

    async def insert(self, table: str, row: Row) -> Row:
        check_table(table)
        created = {check_column(k): _normalise(v) for k, v in row.items() if k != "id"}
        if table in TIMESTAMPED_TABLES and not created.get("created_at"):
            created["created_at"] = datetime.now(timezone.utc).isoformat()
        self._check_unique(table, created)

        row_id = self._state.next_ids[table]
        self._state.next_ids[table] = row_id + 1
        created["id"] = row_id
        self._state.tables[table][row_id] = created
        return copy.deepcopy(created)

    async def update(self, table: str, filters: Filters, patch: Row) -> int:
        check_table(table)
        if not patch:
            return 0
        changes = {check_column(k): _normalise(v) for k, v in patch.items()}
        changed = 0
        for row_id, row in self._state.tables[table].items():
            if _matches(row, filters):
                self._check_unique(table, {**row, **changes}, row_id)
                row.update(copy.deepcopy(changes))
                changed += 1
        return changed

    async def delete(self, table: str, filters: Filters) -> int:
        rows = self._state.tables[check_table(table)]
        doomed = [row_id for row_id, row in rows.items() if _matches(row, filters)]
        for row_id in doomed:
            del rows[row_id]
        return len(doomed)

    async def count(self, table: str, filters: Filters | None = None) -> int:
        return sum(
            1 for row in self._state.tables[check_table(table)].values() if _matches(row, filters)
        )

    async def ping(self) -> bool:
        return True
