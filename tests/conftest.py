"""Pytest configuration and fixtures."""

import os
from collections.abc import AsyncGenerator

os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("ENVIRONMENT", "development")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from tradeledger.api.dependencies import get_store
from tradeledger.api.main import app
from tradeledger.config import reset_settings
from tradeledger.core.interfaces.record_store import IRecordStore, Row
from tradeledger.infrastructure.storage.memory import InMemoryRecordStore


class Seeder:
    """Creates master data rows directly in a store."""

    def __init__(self, store: IRecordStore):
        self.store = store

    async def customer(self, name: str = "Silva Stores", balance: float = 0.0, **extra) -> Row:
        return await self.store.insert(
            "customers", {"name": name, "outstanding_balance": balance, **extra}
        )

    async def product(
        self,
        name: str = "Cable 2.5mm",
        stock: float = 100.0,
        cost: float = 50.0,
        price: float = 100.0,
        **extra,
    ) -> Row:
        return await self.store.insert(
            "products",
            {
                "name": name,
                "cost_price": cost,
                "selling_price": price,
                "mrp": price,
                "stock_quantity": stock,
                "damaged_quantity": 0,
                "commission_value": 0,
                **extra,
            },
        )

    async def location(self, name: str = "Colombo Store", business_id: int | None = 1) -> Row:
        return await self.store.insert("locations", {"name": name, "business_id": business_id})

    async def stock(
        self, product_id: int, location_id: int, quantity: float, damaged: float = 0.0
    ) -> Row:
        return await self.store.insert(
            "product_stocks",
            {
                "product_id": product_id,
                "location_id": location_id,
                "quantity": quantity,
                "damaged_quantity": damaged,
            },
        )

    async def assign(self, user_id: int, location_id: int) -> Row:
        return await self.store.insert(
            "location_assignments", {"user_id": user_id, "location_id": location_id}
        )

    async def account(self, name: str = "Main Cash", account_type: str = "cash") -> Row:
        return await self.store.insert(
            "bank_accounts", {"account_name": name, "account_type": account_type}
        )

    async def supplier(self, name: str = "Orange Electric", due: float = 0.0) -> Row:
        return await self.store.insert("suppliers", {"name": name, "due_payment": due})

    # Reads

    async def balance_of(self, customer_id: int) -> float:
        return (await self.store.get("customers", customer_id))["outstanding_balance"]

    async def stock_of(self, product_id: int) -> tuple[float, float]:
        row = await self.store.get("products", product_id)
        return row["stock_quantity"], row["damaged_quantity"]

    async def location_stock_of(self, product_id: int, location_id: int) -> tuple[float, float]:
        row = await self.store.fetch_one(
            "product_stocks", {"product_id": product_id, "location_id": location_id}
        )
        return row["quantity"], row["damaged_quantity"]


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Settings are cached globally; reload them for every test."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def store() -> InMemoryRecordStore:
    """An empty in-memory record store."""
    return InMemoryRecordStore()


@pytest.fixture
def seed(store: InMemoryRecordStore) -> Seeder:
    return Seeder(store)


@pytest_asyncio.fixture
async def client(store: InMemoryRecordStore) -> AsyncGenerator[AsyncClient, None]:
    """Async API client wired to the test store."""
    app.dependency_overrides[get_store] = lambda: store
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.pop(get_store, None)
