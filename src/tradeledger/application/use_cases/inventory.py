"""
Inventory movements: customer returns, damage reports, count adjustments and
transfers between locations.
"""

from collections.abc import Callable
from dataclasses import dataclass

from tradeledger.application.dto.requests import (
    DamageItemRequest,
    DamageReportRequest,
    InventoryReturnRequest,
    StockAdjustmentItem,
    StockAdjustmentRequest,
    StockTransferItem,
    StockTransferRequest,
)
from tradeledger.application.dto.responses import (
    BatchResultResponse,
    InventoryReturnResponse,
    ReturnResultResponse,
)
from tradeledger.application.postings import (
    adjust_customer_balance,
    load_customer,
    load_location_stock,
    load_order_items,
    load_product,
    location_levels,
    lock_rows,
    next_sequential,
    product_levels,
    record_transaction,
    sync_rep_commission,
    utcnow_iso,
    write_invoice_amounts,
    write_location_levels,
    write_product_levels,
)
from tradeledger.application.use_cases.base import BatchOutcome, StoreUseCase
from tradeledger.application.use_cases.update_invoice import invoice_response
from tradeledger.config import get_logger
from tradeledger.core.entities import (
    Invoice,
    Location,
    Product,
    ReturnStatus,
    ReturnType,
    TransactionType,
)
from tradeledger.core.exceptions import (
    InsufficientStockError,
    InvoiceNotFoundError,
    LocationNotFoundError,
    OrderNotFoundError,
    ValidationError,
)
from tradeledger.core.interfaces.record_store import IRecordStore, Row
from tradeledger.core.services.balance import retotal, retotal_delta
from tradeledger.core.services.cheques import LedgerEntry
from tradeledger.core.services.stock_rules import (
    StockLevels,
    apply_good_return,
    move_to_damaged,
    receive_damaged,
)
from tradeledger.core.services.totals import reduce_line_for_return, round_money, sum_items

logger = get_logger(__name__)


async def load_location(tx: IRecordStore, location_id: int) -> Location:
    row = await tx.get("locations", location_id)
    if row is None:
        raise LocationNotFoundError(location_id)
    return Location.model_validate(row)


async def move_stock(
    tx: IRecordStore,
    product: Product,
    location_id: int,
    movement: Callable[[StockLevels, float], StockLevels],
    quantity: float,
) -> None:
    """Apply one stock rule to both the global and the location levels."""
    await write_product_levels(tx, product.id, movement(product_levels(product), quantity))
    stock = await load_location_stock(tx, product.id, location_id)
    await write_location_levels(
        tx, product.id, location_id, movement(location_levels(stock), quantity)
    )


@dataclass
class InventoryReturnResult:
    """Result of recording a return."""

    return_record: Row
    invoice: Invoice | None = None
    balance_delta: float = 0.0


class RecordInventoryReturnUseCase(StoreUseCase):
    """
    Take goods back into a location.

    Good units go back to sellable stock. Damaged units from a customer only
    add to damaged stock since the sale already took them out of good stock;
    internal damage returns move units from good to damaged. When the return
    names an invoice, the matching lines shrink, the invoice is re-totalled
    and the customer balance follows the new total.
    """

    async def execute(
        self, request: InventoryReturnRequest, returned_by: int | None = None
    ) -> InventoryReturnResult:
        logger.info(
            "inventory_return_started",
            product_id=request.product_id,
            location_id=request.location_id,
            quantity=request.quantity,
            return_type=request.return_type.value,
            invoice_id=request.invoice_id,
        )

        store = await self._get_store()
        async with store.transaction() as tx:
            location = await load_location(tx, request.location_id)

            invoice = None
            customer_id = request.customer_id
            if request.invoice_id is not None:
                invoice_row = await tx.get("invoices", request.invoice_id)
                if invoice_row is None:
                    raise InvoiceNotFoundError(request.invoice_id)
                invoice = Invoice.model_validate(invoice_row)
                if customer_id is not None and customer_id != invoice.customer_id:
                    raise ValidationError(
                        "customerId", "Invoice belongs to a different customer", customer_id
                    )
                customer_id = invoice.customer_id
            elif customer_id is not None:
                await load_customer(tx, customer_id)

            locked = await lock_rows(
                tx,
                customers=[customer_id] if invoice else [],
                invoices=[invoice.id] if invoice else [],
                products=[request.product_id],
            )
            product = await load_product(tx, request.product_id)

            reason = request.reason
            if invoice is not None:
                invoice = Invoice.model_validate(locked.invoices[invoice.id])
                reason = f"[{invoice.invoice_no}] {request.reason or 'Customer return'}"

            return_number = await next_sequential(tx, "inventory_returns", "RET")
            record = await tx.insert(
                "inventory_returns",
                {
                    "return_number": return_number,
                    "product_id": product.id,
                    "location_id": location.id,
                    "business_id": request.business_id or location.business_id,
                    "customer_id": customer_id,
                    "invoice_id": invoice.id if invoice else None,
                    "quantity": request.quantity,
                    "return_type": request.return_type.value,
                    "reason": reason,
                    "status": (
                        ReturnStatus.COMPLETED.value
                        if request.return_type == ReturnType.GOOD
                        else ReturnStatus.PENDING.value
                    ),
                    "returned_by": returned_by,
                },
            )

            if request.return_type == ReturnType.GOOD:
                movement = apply_good_return
            elif customer_id is not None:
                movement = receive_damaged
            else:
                movement = move_to_damaged
            await move_stock(tx, product, location.id, movement, request.quantity)

            updated_invoice = None
            delta = 0.0
            if invoice is not None:
                updated_invoice, delta = await self._shrink_invoice(
                    tx, invoice, product.id, request.quantity
                )

        logger.info(
            "inventory_return_recorded",
            return_number=return_number,
            invoice_id=request.invoice_id,
            balance_delta=delta,
        )
        return InventoryReturnResult(
            return_record=record, invoice=updated_invoice, balance_delta=delta
        )

    async def _shrink_invoice(
        self, tx: IRecordStore, invoice: Invoice, product_id: int, quantity: float
    ) -> tuple[Invoice, float]:
        order = await tx.get("orders", invoice.order_id)
        if order is None:
            raise OrderNotFoundError(invoice.order_id)

        items = await load_order_items(tx, invoice.order_id)
        matching = [item for item in items if item.product_id == product_id]
        available = sum(item.units for item in matching)
        if available + 1e-9 < quantity:
            raise ValidationError(
                "quantity",
                f"Invoice {invoice.invoice_no} only has {available} units of product {product_id}",
                quantity,
            )

        remaining = quantity
        reduced = {}
        for item in matching:
            if remaining <= 0:
                break
            take = min(remaining, item.units)
            if take <= 0:
                continue
            new_item = reduce_line_for_return(item, take)
            reduced[item.id] = new_item
            remaining = round_money(remaining - take)
            await tx.update(
                "order_items",
                {"id": item.id},
                new_item.model_dump(include={
                    "quantity", "free_quantity", "total_price", "commission_earned",
                }),
            )

        items = [reduced.get(item.id, item) for item in items]
        new_total, commission = sum_items(items)
        delta = retotal_delta(invoice.total_amount, new_total)

        await write_invoice_amounts(tx, invoice.id, retotal(invoice, new_total))
        await tx.update(
            "orders",
            {"id": invoice.order_id},
            {"total_amount": new_total, "updated_at": utcnow_iso()},
        )
        await sync_rep_commission(tx, invoice.order_id, order.get("sales_rep_id"), commission)
        await adjust_customer_balance(tx, invoice.customer_id, delta)

        updated = Invoice.model_validate(await tx.get("invoices", invoice.id))
        return updated, delta

    def to_response(self, result: InventoryReturnResult) -> ReturnResultResponse:
        return ReturnResultResponse(
            message="Return recorded successfully",
            return_record=InventoryReturnResponse.model_validate(result.return_record),
            invoice=invoice_response(result.invoice) if result.invoice else None,
            balance_delta=result.balance_delta,
        )


def batch_response(outcome: BatchOutcome[str], noun: str) -> BatchResultResponse:
    message = f"Processed {outcome.processed} {noun}"
    if outcome.errors:
        message += f" with {len(outcome.errors)} errors"
    return BatchResultResponse(
        success=True,
        message=message,
        processed=outcome.processed,
        errors=outcome.errors or None,
        references=outcome.results,
    )


class ReportDamageUseCase(StoreUseCase):
    """
    Move good stock found damaged at a location into damaged stock.

    Each item posts in its own transaction; failed items are reported and the
    rest still go through.
    """

    async def execute(
        self, request: DamageReportRequest, reported_by: int | None = None
    ) -> BatchOutcome[str]:
        logger.info(
            "damage_report_started", location_id=request.location_id, items=len(request.items)
        )
        store = await self._get_store()
        location = await load_location(store, request.location_id)
        business_id = location.business_id or request.business_id
        if business_id is None:
            raise ValidationError("businessId", "Business could not be determined for location")

        async def handle(tx: IRecordStore, item: DamageItemRequest) -> str:
            await lock_rows(tx, products=[item.product_id])
            product = await load_product(tx, item.product_id)
            stock = await load_location_stock(tx, item.product_id, location.id)
            if stock is None:
                raise ValidationError(
                    "productId",
                    f"No stock record for product {item.product_id} at {location.name}",
                    item.product_id,
                )
            if stock.quantity < item.quantity:
                raise InsufficientStockError(
                    item.product_id, location.id, stock.quantity, item.quantity
                )

            return_number = await next_sequential(tx, "inventory_returns", "DMG")
            await tx.insert(
                "inventory_returns",
                {
                    "return_number": return_number,
                    "product_id": product.id,
                    "location_id": location.id,
                    "business_id": business_id,
                    "quantity": item.quantity,
                    "return_type": ReturnType.DAMAGE.value,
                    "reason": f"[{item.damage_type}] {request.reason or 'Damaged in storage'}",
                    "status": ReturnStatus.PENDING.value,
                    "returned_by": reported_by,
                },
            )
            await move_stock(tx, product, location.id, move_to_damaged, item.quantity)

            await record_transaction(
                tx,
                LedgerEntry(
                    transaction_type=TransactionType.INVENTORY_DAMAGE,
                    amount=0,
                    description=f"Damage: {product.name} x{item.quantity}",
                ),
                prefix="DMG",
                reference_no=return_number,
                business_id=business_id,
                metadata={
                    "product_id": product.id,
                    "location_id": location.id,
                    "quantity": item.quantity,
                    "damage_type": item.damage_type,
                    "reason": request.reason,
                    "cost_value": round_money(item.quantity * product.unit_cost),
                },
            )
            return return_number

        outcome = await self._run_batch(
            request.items, handle, lambda item: f"Product {item.product_id}"
        )
        logger.info(
            "damage_report_completed", processed=outcome.processed, failed=len(outcome.errors)
        )
        return outcome

    def to_response(self, outcome: BatchOutcome[str]) -> BatchResultResponse:
        return batch_response(outcome, "damaged items")


class AdjustStockUseCase(StoreUseCase):
    """Correct location counts after a stock take. Global stock is left alone."""

    async def execute(
        self, request: StockAdjustmentRequest, adjusted_by: int | None = None
    ) -> BatchOutcome[str]:
        store = await self._get_store()
        location = await load_location(store, request.location_id)

        async def handle(tx: IRecordStore, item: StockAdjustmentItem) -> str:
            product = await load_product(tx, item.product_id)
            stock = await load_location_stock(tx, product.id, location.id)
            levels = location_levels(stock)
            new_quantity = max(0.0, item.new_quantity)
            await write_location_levels(
                tx,
                product.id,
                location.id,
                StockLevels(good=new_quantity, damaged=levels.damaged),
            )
            logger.info(
                "stock_adjusted",
                product_id=product.id,
                location_id=location.id,
                previous=levels.good,
                quantity=new_quantity,
                reason=request.reason,
                adjusted_by=adjusted_by,
            )
            return f"{product.name}: {levels.good} -> {new_quantity}"

        return await self._run_batch(
            request.items, handle, lambda item: f"Product {item.product_id}"
        )

    def to_response(self, outcome: BatchOutcome[str]) -> BatchResultResponse:
        return batch_response(outcome, "adjustments")


class TransferStockUseCase(StoreUseCase):
    """Move good units between two locations; global stock is unchanged."""

    async def execute(
        self, request: StockTransferRequest, moved_by: int | None = None
    ) -> BatchOutcome[str]:
        if request.source_location_id == request.dest_location_id:
            raise ValidationError(
                "destLocationId", "Source and destination must differ", request.dest_location_id
            )
        store = await self._get_store()
        source = await load_location(store, request.source_location_id)
        dest = await load_location(store, request.dest_location_id)

        async def handle(tx: IRecordStore, item: StockTransferItem) -> str:
            product = await load_product(tx, item.product_id)
            from_levels = location_levels(await load_location_stock(tx, product.id, source.id))
            if from_levels.good < item.quantity:
                raise InsufficientStockError(
                    product.id, source.id, from_levels.good, item.quantity
                )
            to_levels = location_levels(await load_location_stock(tx, product.id, dest.id))

            await write_location_levels(
                tx,
                product.id,
                source.id,
                StockLevels(good=from_levels.good - item.quantity, damaged=from_levels.damaged),
            )
            await write_location_levels(
                tx, product.id, dest.id, apply_good_return(to_levels, item.quantity)
            )
            logger.info(
                "stock_transferred",
                product_id=product.id,
                source=source.id,
                dest=dest.id,
                quantity=item.quantity,
                moved_by=moved_by,
            )
            return f"{product.name} x{item.quantity}"

        return await self._run_batch(
            request.items, handle, lambda item: f"Product {item.product_id}"
        )

    def to_response(self, outcome: BatchOutcome[str]) -> BatchResultResponse:
        return batch_response(outcome, "transfers")
