"""Shared plumbing for store-backed use cases."""

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from tradeledger.config import get_logger
from tradeledger.core.exceptions import LedgerError, ValidationError
from tradeledger.core.interfaces.record_store import IRecordStore

logger = get_logger(__name__)

ItemT = TypeVar("ItemT")
ResultT = TypeVar("ResultT")


@dataclass
class BatchOutcome(Generic[ResultT]):
    """Per-item results of a batch where individual items may fail."""

    results: list[ResultT] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def processed(self) -> int:
        return len(self.results)


class StoreUseCase:
    """Base for use cases that work against the record store."""

    def __init__(self, store: IRecordStore | None = None):
        self._store = store

    async def _get_store(self) -> IRecordStore:
        if self._store is None:
            from tradeledger.infrastructure.storage import get_record_store

            self._store = await get_record_store()
        return self._store

    async def _run_batch(
        self,
        items: Sequence[ItemT],
        handler: Callable[[IRecordStore, ItemT], Awaitable[ResultT]],
        describe: Callable[[ItemT], str],
        field_name: str = "items",
    ) -> BatchOutcome[ResultT]:
        """
        Run ``handler`` for each item in its own transaction.

        Any ledger error rolls back only its own item and is reported, since
        earlier items are already committed. The batch only fails as a whole
        when no item succeeded.
        """
        store = await self._get_store()
        outcome: BatchOutcome[ResultT] = BatchOutcome()

        for item in items:
            try:
                async with store.transaction() as tx:
                    outcome.results.append(await handler(tx, item))
            except LedgerError as e:
                logger.warning(
                    "batch_item_failed", item=describe(item), code=e.code, error=e.message
                )
                outcome.errors.append(f"{describe(item)}: {e.message}")

        if not outcome.results:
            raise ValidationError(field_name, ", ".join(outcome.errors))
        return outcome
