"""Update and recalculate invoices as a reversal of the old order plus a fresh application."""

from dataclasses import dataclass

from tradeledger.application.dto.requests import UpdateInvoiceRequest
from tradeledger.application.dto.responses import (
    InvoiceResponse,
    OrderItemResponse,
    RecalculateInvoiceResponse,
    UpdateInvoiceResponse,
)
from tradeledger.application.postings import (
    adjust_customer_balance,
    load_order_items,
    load_product,
    lock_rows,
    product_levels,
    replace_order_items,
    snapshot_invoice,
    sync_rep_commission,
    utcnow_iso,
    write_invoice_amounts,
    write_product_levels,
)
from tradeledger.application.use_cases.base import StoreUseCase
from tradeledger.application.use_cases.create_invoice import require_products, to_line_inputs
from tradeledger.config import get_logger
from tradeledger.core.entities import Invoice, Order, OrderItem, OrderStatus
from tradeledger.core.exceptions import (
    InvalidTransitionError,
    InvoiceNotFoundError,
    OrderNotFoundError,
)
from tradeledger.core.interfaces.record_store import IRecordStore
from tradeledger.core.services.balance import (
    OrderSnapshot,
    edit_delta,
    retotal,
    retotal_delta,
)
from tradeledger.core.services.stock_rules import apply_edit_diff, units_by_product
from tradeledger.core.services.totals import (
    gross_subtotal,
    price_order,
    resolve_extra_discount,
    sum_items,
)

logger = get_logger(__name__)


async def load_invoice_with_order(tx: IRecordStore, invoice_id: int) -> tuple[Invoice, Order]:
    row = await tx.get("invoices", invoice_id)
    if row is None:
        raise InvoiceNotFoundError(invoice_id)
    invoice = Invoice.model_validate(row)
    order_row = await tx.get("orders", invoice.order_id)
    if order_row is None:
        raise OrderNotFoundError(invoice.order_id)
    return invoice, Order.model_validate(order_row)


def invoice_response(invoice: Invoice, items: list[OrderItem] | None = None) -> InvoiceResponse:
    payload = invoice.model_dump(mode="json")
    if items is not None:
        payload["items"] = [OrderItemResponse.model_validate(i.model_dump()) for i in items]
    return InvoiceResponse.model_validate(payload)


@dataclass
class UpdateInvoiceResult:
    """Result of an invoice edit."""

    invoice: Invoice
    items: list[OrderItem]
    balance_delta: float
    stock_changes: dict[int, float]


class UpdateInvoiceUseCase(StoreUseCase):
    """
    Replace an invoice's lines.

    The old order is reversed and the new one applied in one transaction, so
    the customer balance moves by exactly ``new_total - old_total`` and each
    product's stock by the change in units. Global stock is not clamped here.
    """

    async def execute(self, invoice_id: int, request: UpdateInvoiceRequest) -> UpdateInvoiceResult:
        logger.info(
            "update_invoice_started",
            invoice_id=invoice_id,
            user_id=request.user_id,
            items=len(request.items),
        )

        lines = to_line_inputs(request.items)
        store = await self._get_store()
        async with store.transaction() as tx:
            invoice, order = await load_invoice_with_order(tx, invoice_id)
            if order.status == OrderStatus.CANCELLED:
                raise InvalidTransitionError("order", order.status.value, "edit invoice")

            old_items = await load_order_items(tx, order.id)
            product_ids = sorted(
                {line.product_id for line in lines} | {item.product_id for item in old_items}
            )
            locked = await lock_rows(
                tx,
                customers=[invoice.customer_id],
                invoices=[invoice.id],
                products=product_ids,
            )
            products = require_products(
                sorted({line.product_id for line in lines}), locked.products
            )

            extra = resolve_extra_discount(
                gross_subtotal([line.total for line in lines]),
                request.extra_discount_amount,
                request.extra_discount_percent,
            )
            priced = price_order(lines, products, extra)

            await snapshot_invoice(
                tx, invoice, request.user_id, request.change_reason or "Invoice edited"
            )

            delta = edit_delta(
                OrderSnapshot(invoice.total_amount, units_by_product(old_items)),
                OrderSnapshot(request.grand_total, priced.units_by_product),
            )
            for product_id, consumed in delta.stock.items():
                product = await load_product(tx, product_id)
                await write_product_levels(
                    tx, product_id, apply_edit_diff(product_levels(product), consumed)
                )

            items = await replace_order_items(tx, order.id, priced.items)
            await tx.update(
                "orders",
                {"id": order.id},
                {"total_amount": request.grand_total, "updated_at": utcnow_iso()},
            )
            await sync_rep_commission(tx, order.id, order.sales_rep_id, priced.total_commission)

            amounts = retotal(invoice, request.grand_total)
            extra_fields = {"due_date": request.due_date.isoformat()} if request.due_date else {}
            await write_invoice_amounts(tx, invoice.id, amounts, **extra_fields)
            await adjust_customer_balance(tx, invoice.customer_id, delta.balance)

            updated = Invoice.model_validate(await tx.get("invoices", invoice.id))

        logger.info(
            "invoice_updated",
            invoice_no=updated.invoice_no,
            old_total=invoice.total_amount,
            new_total=updated.total_amount,
            balance_delta=delta.balance,
        )

        return UpdateInvoiceResult(
            invoice=updated,
            items=items,
            balance_delta=delta.balance,
            stock_changes=dict(delta.stock),
        )

    def to_response(self, result: UpdateInvoiceResult) -> UpdateInvoiceResponse:
        return UpdateInvoiceResponse(
            message="Invoice updated successfully",
            invoice=invoice_response(result.invoice, result.items),
            balance_delta=result.balance_delta,
            stock_changes=result.stock_changes,
        )


@dataclass
class RecalculateInvoiceResult:
    """Result of re-summing an invoice from its lines."""

    invoice: Invoice
    old_total: float
    new_total: float

    @property
    def difference(self) -> float:
        return retotal_delta(self.old_total, self.new_total)


class RecalculateInvoiceUseCase(StoreUseCase):
    """Re-sum an invoice from its current lines and post the difference."""

    async def execute(self, invoice_id: int) -> RecalculateInvoiceResult:
        store = await self._get_store()
        async with store.transaction() as tx:
            invoice, order = await load_invoice_with_order(tx, invoice_id)
            await lock_rows(tx, customers=[invoice.customer_id], invoices=[invoice.id])

            items = await load_order_items(tx, order.id)
            new_total, commission = sum_items(items)

            await write_invoice_amounts(tx, invoice.id, retotal(invoice, new_total))
            await tx.update(
                "orders",
                {"id": order.id},
                {"total_amount": new_total, "updated_at": utcnow_iso()},
            )
            await sync_rep_commission(tx, order.id, order.sales_rep_id, commission)
            await adjust_customer_balance(
                tx, invoice.customer_id, retotal_delta(invoice.total_amount, new_total)
            )

            updated = Invoice.model_validate(await tx.get("invoices", invoice.id))

        logger.info(
            "invoice_recalculated",
            invoice_no=invoice.invoice_no,
            old_total=invoice.total_amount,
            new_total=new_total,
        )
        return RecalculateInvoiceResult(
            invoice=updated, old_total=invoice.total_amount, new_total=new_total
        )

    def to_response(self, result: RecalculateInvoiceResult) -> RecalculateInvoiceResponse:
        return RecalculateInvoiceResponse(
            message="Invoice recalculated",
            old_total=result.old_total,
            new_total=result.new_total,
            difference=result.difference,
            invoice=invoice_response(result.invoice),
        )
