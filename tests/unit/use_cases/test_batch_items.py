"""Per-item transactions in batch use cases."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import pytest

from tradeledger.application.dto.requests import DamageItemRequest, DamageReportRequest
from tradeledger.application.use_cases import ReportDamageUseCase
from tradeledger.core.exceptions import ConcurrentModificationError, ValidationError
from tradeledger.infrastructure.storage.memory import InMemoryRecordStore


class LockedOnceStore(InMemoryRecordStore):
    """Memory store whose n-th top-level transaction hits a busy database."""

    def __init__(self, fail_on: set[int]):
        super().__init__()
        self.fail_on = fail_on
        self.opened = 0

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[InMemoryRecordStore]:
        self.opened += 1
        async with super().transaction() as tx:
            if self.opened in self.fail_on:
                raise ConcurrentModificationError("transaction", "database is locked")
            yield tx


@pytest.fixture
def store() -> LockedOnceStore:
    return LockedOnceStore(fail_on={2})


async def _three_products(seed):
    location = await seed.location()
    products = []
    for name in ("Switch", "Socket", "Plug"):
        product = await seed.product(name, stock=50)
        await seed.stock(product["id"], location["id"], 20)
        products.append(product)
    return location, products


def _report(location, products) -> DamageReportRequest:
    return DamageReportRequest(
        location_id=location["id"],
        items=[DamageItemRequest(product_id=p["id"], quantity=3) for p in products],
    )


async def test_conflict_mid_batch_is_reported_per_item(store, seed):
    location, products = await _three_products(seed)

    outcome = await ReportDamageUseCase(store).execute(_report(location, products))

    assert outcome.processed == 2
    assert len(outcome.errors) == 1
    assert "Concurrent modification" in outcome.errors[0]
    assert await seed.stock_of(products[0]["id"]) == (47, 3)
    assert await seed.stock_of(products[1]["id"]) == (50, 0)
    assert await seed.stock_of(products[2]["id"]) == (47, 3)
    assert await store.count("account_transactions") == 2


async def test_conflict_on_every_item_fails_batch(store, seed):
    location, products = await _three_products(seed)
    store.fail_on = {1, 2, 3}

    with pytest.raises(ValidationError):
        await ReportDamageUseCase(store).execute(_report(location, products))

    assert await store.count("inventory_returns") == 0
