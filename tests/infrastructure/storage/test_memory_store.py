"""Tests for the in-memory record store."""

import pytest

from tradeledger.core.exceptions import ConflictError, ValidationError
from tradeledger.infrastructure.storage.memory import InMemoryRecordStore


@pytest.fixture
async def filled(store: InMemoryRecordStore) -> InMemoryRecordStore:
    for name, balance in (("Silva Stores", 100), ("Perera Hardware", 0), ("Fernando & Sons", 250)):
        await store.insert("customers", {"name": name, "outstanding_balance": balance})
    return store


class TestCrud:
    async def test_insert_assigns_ids_and_timestamps(self, store):
        first = await store.insert("customers", {"name": "A"})
        second = await store.insert("customers", {"name": "B"})

        assert (first["id"], second["id"]) == (1, 2)
        assert first["created_at"]
        assert "created_at" not in await store.insert("products", {"name": "P"})

    async def test_returned_rows_are_copies(self, store):
        row = await store.insert("customers", {"name": "A"})
        row["name"] = "changed"

        assert (await store.get("customers", row["id"]))["name"] == "A"

    async def test_update_and_delete(self, filled):
        changed = await filled.update(
            "customers", {"outstanding_balance__gte": 100}, {"business_id": 2}
        )
        assert changed == 2
        assert await filled.count("customers", {"business_id": 2}) == 2

        assert await filled.delete("customers", {"name": "Perera Hardware"}) == 1
        assert await filled.count("customers") == 2

    async def test_unknown_table(self, store):
        with pytest.raises(ValidationError):
            await store.fetch("users")

    async def test_bad_column(self, store):
        with pytest.raises(ValidationError):
            await store.insert("customers", {"name; DROP": "x"})


class TestFilters:
    async def test_operators(self, filled):
        assert await filled.count("customers", {"outstanding_balance__lte": 100}) == 2
        assert await filled.count("customers", {"name__contains": "SONS"}) == 1
        assert await filled.count("customers", {"id": [1, 3]}) == 2
        assert await filled.count("customers", {"id__in": []}) == 0
        assert await filled.count("customers", {"name__ne": "Silva Stores"}) == 2

    async def test_startswith_is_an_exact_prefix(self, filled):
        assert await filled.count("customers", {"name__startswith": "Per"}) == 1
        assert await filled.count("customers", {"name__startswith": "per"}) == 0
        assert await filled.count("customers", {"name__startswith": "Sons"}) == 0

    async def test_unsupported_operator(self, filled):
        with pytest.raises(ValidationError):
            await filled.fetch("customers", {"name__like": "S%"})

    async def test_order_and_limit(self, filled):
        rows = await filled.fetch(
            "customers", order_by="outstanding_balance", descending=True, limit=2
        )
        assert [row["name"] for row in rows] == ["Fernando & Sons", "Silva Stores"]

    async def test_lock_returns_existing_rows_by_id(self, filled):
        locked = await filled.lock("customers", [3, 1, 9])
        assert list(locked) == [1, 3]


class TestTransactions:
    async def test_rollback_on_error(self, filled):
        with pytest.raises(RuntimeError):
            async with filled.transaction() as tx:
                await tx.update("customers", {"id": 1}, {"outstanding_balance": 0})
                await tx.insert("customers", {"name": "Ghost"})
                raise RuntimeError("boom")

        assert (await filled.get("customers", 1))["outstanding_balance"] == 100
        assert await filled.count("customers") == 3
        assert (await filled.insert("customers", {"name": "Next"}))["id"] == 4

    async def test_nested_transaction_joins(self, filled):
        async with filled.transaction() as tx:
            async with tx.transaction() as inner:
                assert inner is tx
                await inner.update("customers", {"id": 1}, {"outstanding_balance": 5})

        assert (await filled.get("customers", 1))["outstanding_balance"] == 5

    async def test_unique_columns(self, store):
        await store.insert("orders", {"order_no": "ORD-1001", "customer_id": 1})

        with pytest.raises(ConflictError):
            await store.insert("orders", {"order_no": "ORD-1001", "customer_id": 2})

    async def test_return_numbers_are_unique(self, store):
        await store.insert("inventory_returns", {"return_number": "RET-1001", "quantity": 1})

        with pytest.raises(ConflictError):
            await store.insert("inventory_returns", {"return_number": "RET-1001", "quantity": 2})

    async def test_ping(self, store):
        assert await store.ping()
