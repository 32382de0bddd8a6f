"""Abstract interface for the relational record store."""

import re
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from contextlib import AbstractAsyncContextManager
from typing import Any

from tradeledger.core.exceptions import ValidationError

Row = dict[str, Any]
Filters = Mapping[str, Any]

TABLES = frozenset(
    {
        "customers",
        "products",
        "locations",
        "location_assignments",
        "product_stocks",
        "orders",
        "order_items",
        "invoices",
        "invoice_history",
        "payments",
        "rep_commissions",
        "inventory_returns",
        "bank_accounts",
        "account_transactions",
        "suppliers",
        "purchases",
        "purchase_items",
        "supplier_payments",
        "supplier_return_batches",
        "loading_sheets",
    }
)

# Columns stored as JSON text
JSON_COLUMNS: dict[str, frozenset[str]] = {
    "account_transactions": frozenset({"metadata"}),
    "invoice_history": frozenset({"previous_data"}),
}

# Tables stamped with created_at on insert
TIMESTAMPED_TABLES = frozenset(
    {
        "customers",
        "orders",
        "invoices",
        "payments",
        "rep_commissions",
        "inventory_returns",
        "account_transactions",
        "supplier_return_batches",
        "loading_sheets",
    }
)

# Filter suffixes: column__gte, column__lte, column__ne, column__in,
# column__contains (case-insensitive), column__startswith (exact prefix)
FILTER_OPERATORS = frozenset({"eq", "ne", "gte", "lte", "in", "contains", "startswith"})

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


def check_table(table: str) -> str:
    if table not in TABLES:
        raise ValidationError("table", f"Unknown table: {table}", table)
    return table


def check_column(column: str) -> str:
    if not _IDENTIFIER.match(column):
        raise ValidationError("column", f"Invalid column name: {column}", column)
    return column


def split_filter(key: str, value: Any) -> tuple[str, str]:
    """
    Split a filter key into (column, operator).

    A list, tuple or set value without an explicit operator means membership.
    """
    column, _, op = key.partition("__")
    if not op:
        op = "in" if isinstance(value, (list, tuple, set, frozenset)) else "eq"
    if op not in FILTER_OPERATORS:
        raise ValidationError("filter", f"Unsupported filter operator: {op}", key)
    return check_column(column), op


class IRecordStore(ABC):
    """
    Row-level access to the ledger tables.

    Every mutation family runs inside ``transaction()``; the yielded store is
    bound to that transaction, and calling ``transaction()`` on it again
    reuses it. Leaving the block with an exception discards every write.
    """

    @abstractmethod
    async def fetch(
        self,
        table: str,
        filters: Filters | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Row]:
        """Fetch rows matching all filters."""
        pass

    @abstractmethod
    async def insert(self, table: str, row: Row) -> Row:
        """Insert a row and return it with its id."""
        pass

    @abstractmethod
    async def update(self, table: str, filters: Filters, patch: Row) -> int:
        """Update matching rows, returning the number changed."""
        pass

    @abstractmethod
    async def delete(self, table: str, filters: Filters) -> int:
        """Delete matching rows, returning the number removed."""
        pass

    @abstractmethod
    async def count(self, table: str, filters: Filters | None = None) -> int:
        """Count matching rows."""
        pass

    @abstractmethod
    def transaction(self) -> AbstractAsyncContextManager["IRecordStore"]:
        """Open (or join) a transaction."""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """Check the store is reachable."""
        pass

    async def fetch_one(self, table: str, filters: Filters) -> Row | None:
        rows = await self.fetch(table, filters, limit=1)
        return rows[0] if rows else None

    async def get(self, table: str, row_id: int) -> Row | None:
        return await self.fetch_one(table, {"id": row_id})

    async def lock(self, table: str, ids: Iterable[int]) -> dict[int, Row]:
        """
        Load rows one by one in ascending id order.

        Callers lock Customer, then Invoice, then Product rows so that two
        writers never wait on each other in opposite orders.
        """
        locked: dict[int, Row] = {}
        for row_id in sorted(set(ids)):
            row = await self.get(table, row_id)
            if row is not None:
                locked[row_id] = row
        return locked

    async def close(self) -> None:
        """Release resources held by the store."""
        return None
