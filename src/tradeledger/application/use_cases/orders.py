"""Order status changes and lorry loading sheets."""

from dataclasses import dataclass, field
from datetime import date

from tradeledger.application.dto.requests import (
    CreateLoadingSheetRequest,
    LoadingUpdate,
    ReconcileLoadingRequest,
    UpdateOrderStatusRequest,
)
from tradeledger.application.dto.responses import (
    LoadingSheetResponse,
    OrderResponse,
    OrderStatusResponse,
    ReconcileLoadingResponse,
)
from tradeledger.application.postings import (
    adjust_customer_balance,
    load_order_items,
    lock_rows,
    shift_global_stock,
    snapshot_invoice,
    utcnow_iso,
    write_invoice_amounts,
)
from tradeledger.application.use_cases.base import StoreUseCase
from tradeledger.config import get_logger
from tradeledger.core.entities import (
    Invoice,
    LoadingSheet,
    LoadingStatus,
    Order,
    OrderStatus,
    PaymentMethod,
)
from tradeledger.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    LoadingSheetNotFoundError,
    OrderNotFoundError,
    ValidationError,
)
from tradeledger.core.interfaces.record_store import IRecordStore, Row
from tradeledger.core.services import numbering
from tradeledger.core.services.balance import apply_payment, retotal, retotal_delta
from tradeledger.core.services.stock_rules import cancellation_restores

logger = get_logger(__name__)


async def load_order(tx: IRecordStore, order_id: int) -> Order:
    row = await tx.get("orders", order_id)
    if row is None:
        raise OrderNotFoundError(order_id)
    return Order.model_validate(row)


async def change_order_status(
    tx: IRecordStore, order: Order, new_status: OrderStatus
) -> dict[int, float]:
    """
    Set an order's status, putting stock back when it is cancelled.

    Returns the units restored per product. A cancelled order stays cancelled.
    """
    if order.status == OrderStatus.CANCELLED and new_status != OrderStatus.CANCELLED:
        raise InvalidTransitionError("order", order.status.value, f"change to {new_status.value}")

    restored: dict[int, float] = {}
    if new_status == OrderStatus.CANCELLED:
        items = await load_order_items(tx, order.id)
        restored = cancellation_restores(order.status, items)
        await lock_rows(tx, products=restored)
        for product_id, units in restored.items():
            await shift_global_stock(tx, product_id, units)

    await tx.update(
        "orders", {"id": order.id}, {"status": new_status.value, "updated_at": utcnow_iso()}
    )
    if restored:
        logger.info("order_cancelled_stock_restored", order_id=order.id, restored=restored)
    return restored


@dataclass
class OrderStatusResult:
    order: Row
    restored: dict[int, float] = field(default_factory=dict)


class UpdateOrderStatusUseCase(StoreUseCase):
    """Change an order's status."""

    async def execute(self, order_id: int, request: UpdateOrderStatusRequest) -> OrderStatusResult:
        store = await self._get_store()
        async with store.transaction() as tx:
            order = await load_order(tx, order_id)
            restored = await change_order_status(tx, order, request.status)
            updated = await tx.get("orders", order_id)

        logger.info(
            "order_status_updated",
            order_id=order_id,
            previous=order.status.value,
            status=request.status.value,
        )
        return OrderStatusResult(order=updated, restored=restored)

    def to_response(self, result: OrderStatusResult) -> OrderStatusResponse:
        return OrderStatusResponse(
            message="Order status updated",
            order=OrderResponse.model_validate(result.order),
            restored=result.restored,
        )


class CreateLoadingSheetUseCase(StoreUseCase):
    """Put a set of orders on a lorry."""

    async def execute(self, request: CreateLoadingSheetRequest) -> Row:
        loading_date = request.loading_date or date.today()
        order_ids = sorted(set(request.order_ids))

        store = await self._get_store()
        async with store.transaction() as tx:
            rows = {row["id"]: row for row in await tx.fetch("orders", {"id": order_ids})}
            for order_id in order_ids:
                if order_id not in rows:
                    raise OrderNotFoundError(order_id)
                order = Order.model_validate(rows[order_id])
                if order.status == OrderStatus.CANCELLED:
                    raise ValidationError("orderIds", f"Order {order.order_no} is cancelled", order_id)
                if order.load_id is not None:
                    raise ConflictError(
                        f"Order {order.order_no} is already on a loading sheet",
                        details={"order_id": order_id, "load_id": order.load_id},
                    )

            existing = await tx.count(
                "loading_sheets", {"load_no__startswith": f"LOAD-{loading_date.year}-"}
            )
            load_no = numbering.yearly("LOAD", loading_date.year, existing)
            sheet = await tx.insert(
                "loading_sheets",
                {
                    "load_no": load_no,
                    "lorry_number": request.lorry_number,
                    "driver_id": request.driver_id,
                    "helper_name": request.helper_name,
                    "loading_date": loading_date.isoformat(),
                    "status": LoadingStatus.IN_TRANSIT.value,
                },
            )
            await tx.update(
                "orders",
                {"id": order_ids},
                {
                    "load_id": sheet["id"],
                    "status": OrderStatus.IN_TRANSIT.value,
                    "updated_at": utcnow_iso(),
                },
            )

        logger.info("loading_sheet_created", load_no=load_no, orders=len(order_ids))
        return sheet

    def to_response(self, sheet: Row) -> LoadingSheetResponse:
        return LoadingSheetResponse.model_validate(sheet)


@dataclass
class ReconcileLoadingResult:
    load: Row
    updated_orders: list[int] = field(default_factory=list)
    balance_changes: dict[int, float] = field(default_factory=dict)


class ReconcileLoadingUseCase(StoreUseCase):
    """
    Record what happened to each order on a returning lorry.

    Returned orders are cancelled with their stock put back. A changed final
    amount re-totals the invoice and moves the customer balance by the
    difference. Orders paid on delivery get a cash payment for what was due.
    """

    async def execute(self, request: ReconcileLoadingRequest) -> ReconcileLoadingResult:
        logger.info(
            "reconcile_loading_started", load_id=request.load_id, updates=len(request.updates)
        )
        result_orders: list[int] = []
        balance_changes: dict[int, float] = {}

        store = await self._get_store()
        async with store.transaction() as tx:
            row = await tx.get("loading_sheets", request.load_id)
            if row is None:
                raise LoadingSheetNotFoundError(request.load_id)
            sheet = LoadingSheet.model_validate(row)
            if sheet.status == LoadingStatus.COMPLETED:
                raise InvalidTransitionError("loading sheet", sheet.status.value, "reconcile")

            for update in request.updates:
                change = await self._apply_update(tx, sheet, update, request.user_id)
                result_orders.append(update.order_id)
                if change:
                    balance_changes[update.order_id] = change

            if request.close_load:
                await tx.update(
                    "loading_sheets",
                    {"id": sheet.id},
                    {"status": LoadingStatus.COMPLETED.value},
                )
            updated = await tx.get("loading_sheets", sheet.id)

        logger.info(
            "loading_reconciled",
            load_no=sheet.load_no,
            orders=len(result_orders),
            closed=request.close_load,
        )
        return ReconcileLoadingResult(
            load=updated, updated_orders=result_orders, balance_changes=balance_changes
        )

    async def _apply_update(
        self,
        tx: IRecordStore,
        sheet: LoadingSheet,
        update: LoadingUpdate,
        user_id: int | None,
    ) -> float:
        order = await load_order(tx, update.order_id)
        if order.load_id != sheet.id:
            raise ValidationError(
                "orderId", f"Order {order.order_no} is not on load {sheet.load_no}", order.id
            )

        if update.status is not None:
            status = OrderStatus.CANCELLED if update.status == "Returned" else OrderStatus(update.status)
            if status != order.status:
                await change_order_status(tx, order, status)

        invoice_row = await tx.fetch_one("invoices", {"order_id": order.id})
        if invoice_row is None:
            return 0.0

        locked = await lock_rows(
            tx, customers=[invoice_row["customer_id"]], invoices=[invoice_row["id"]]
        )
        invoice = Invoice.model_validate(locked.invoices[invoice_row["id"]])
        delta = 0.0

        if update.final_amount is not None and abs(update.final_amount - invoice.total_amount) > 0.005:
            if user_id is not None:
                await snapshot_invoice(
                    tx, invoice, user_id, f"Loading reconciliation {sheet.load_no}"
                )
            delta = retotal_delta(invoice.total_amount, update.final_amount)
            amounts = retotal(invoice, update.final_amount)
            await write_invoice_amounts(tx, invoice.id, amounts)
            await tx.update(
                "orders",
                {"id": order.id},
                {"total_amount": update.final_amount, "updated_at": utcnow_iso()},
            )
            await adjust_customer_balance(tx, invoice.customer_id, delta)
            invoice = Invoice.model_validate(await tx.get("invoices", invoice.id))

        if update.payment_status == "Paid" and invoice.due_amount > 0:
            outstanding = invoice.due_amount
            await tx.insert(
                "payments",
                {
                    "invoice_id": invoice.id,
                    "customer_id": invoice.customer_id,
                    "amount": outstanding,
                    "payment_date": date.today().isoformat(),
                    "method": PaymentMethod.CASH.value,
                    "collected_by": user_id,
                    "notes": f"Collected on delivery, load {sheet.load_no}",
                    "updated_at": utcnow_iso(),
                },
            )
            await write_invoice_amounts(tx, invoice.id, apply_payment(invoice, outstanding))
            await adjust_customer_balance(tx, invoice.customer_id, -outstanding)
            delta -= outstanding

        return delta

    def to_response(self, result: ReconcileLoadingResult) -> ReconcileLoadingResponse:
        return ReconcileLoadingResponse(
            message="Loading sheet reconciled",
            load=LoadingSheetResponse.model_validate(result.load),
            updated_orders=result.updated_orders,
            balance_changes=result.balance_changes,
        )
