"""Create Invoice Use Case: order, invoice, first payment, stock and balance."""

from dataclasses import dataclass
from datetime import date, timedelta

from tradeledger.application.dto.requests import CreateInvoiceRequest, InvoiceItemRequest
from tradeledger.application.dto.responses import CreateInvoiceResponse
from tradeledger.application.postings import (
    adjust_customer_balance,
    deduct_sale_stock,
    lock_rows,
    next_sequential,
    record_transaction,
    replace_order_items,
    sync_rep_commission,
    utcnow_iso,
)
from tradeledger.application.use_cases.base import StoreUseCase
from tradeledger.config import get_logger, get_settings
from tradeledger.core.entities import (
    ChequeStatus,
    Invoice,
    OrderItem,
    PaymentMethod,
    Product,
    TransactionType,
)
from tradeledger.core.exceptions import (
    AccountNotFoundError,
    CustomerNotFoundError,
    ProductNotFoundError,
)
from tradeledger.core.interfaces.record_store import IRecordStore, Row
from tradeledger.core.services.balance import invoice_amounts, new_order_delta
from tradeledger.core.services.cheques import LedgerEntry
from tradeledger.core.services.stock_rules import DeductionOrder, pick_deduction_order
from tradeledger.core.services.totals import (
    LineInput,
    gross_subtotal,
    price_order,
    resolve_extra_discount,
)

logger = get_logger(__name__)


def to_line_inputs(items: list[InvoiceItemRequest]) -> list[LineInput]:
    return [
        LineInput(
            product_id=item.product_id,
            quantity=item.quantity,
            free_quantity=item.free_quantity,
            unit_price=item.unit_price,
            discount_percent=item.discount_percent,
            discount_amount=item.discount_amount,
            total=item.total,
        )
        for item in items
    ]


def require_products(product_ids: list[int], rows: dict[int, Row]) -> dict[int, Product]:
    missing = [pid for pid in product_ids if pid not in rows]
    if missing:
        raise ProductNotFoundError(missing[0])
    return {pid: Product.model_validate(row) for pid, row in rows.items()}


@dataclass
class CreateInvoiceResult:
    """Result of creating an invoice."""

    order: Row
    invoice: Invoice
    items: list[OrderItem]
    payment: Row | None
    customer_balance: float
    total_commission: float


class CreateInvoiceUseCase(StoreUseCase):
    """Create an order with its invoice, deduct stock and charge the customer."""

    def __init__(
        self,
        store: IRecordStore | None = None,
        deduction_order: DeductionOrder = pick_deduction_order,
    ):
        super().__init__(store)
        self._deduction_order = deduction_order

    async def execute(self, request: CreateInvoiceRequest) -> CreateInvoiceResult:
        logger.info(
            "create_invoice_started",
            customer_id=request.customer_id,
            items=len(request.items),
            grand_total=request.grand_total,
        )

        ledger = get_settings().ledger
        invoice_date = request.invoice_date or date.today()
        due_date = request.due_date or invoice_date + timedelta(days=ledger.invoice_due_days)
        lines = to_line_inputs(request.items)
        product_ids = sorted({line.product_id for line in lines})

        store = await self._get_store()
        async with store.transaction() as tx:
            locked = await lock_rows(tx, customers=[request.customer_id], products=product_ids)
            if request.customer_id not in locked.customers:
                raise CustomerNotFoundError(request.customer_id)
            products = require_products(product_ids, locked.products)

            extra = resolve_extra_discount(
                gross_subtotal([line.total for line in lines]),
                request.extra_discount_amount,
                request.extra_discount_percent,
            )
            priced = price_order(lines, products, extra)
            if abs(priced.net_total - request.grand_total) > 0.01:
                # Caller totals are trusted; the mismatch is only reported
                logger.warning(
                    "grand_total_mismatch",
                    grand_total=request.grand_total,
                    computed=priced.net_total,
                )

            order_no = await next_sequential(tx, "orders", "ORD")
            invoice_no = await next_sequential(tx, "invoices", "INV")

            order = await tx.insert(
                "orders",
                {
                    "order_no": order_no,
                    "customer_id": request.customer_id,
                    "sales_rep_id": request.sales_rep_id,
                    "business_id": request.business_id,
                    "status": request.order_status.value,
                    "total_amount": request.grand_total,
                    "order_date": invoice_date.isoformat(),
                    "notes": request.notes,
                    "updated_at": utcnow_iso(),
                },
            )
            items = await replace_order_items(tx, order["id"], priced.items)
            await sync_rep_commission(
                tx, order["id"], request.sales_rep_id, priced.total_commission
            )

            amounts = invoice_amounts(
                request.grand_total, request.paid_amount, request.payment_status
            )
            invoice_row = await tx.insert(
                "invoices",
                {
                    "invoice_no": invoice_no,
                    "order_id": order["id"],
                    "customer_id": request.customer_id,
                    "due_date": due_date.isoformat(),
                    "updated_at": utcnow_iso(),
                    **amounts.as_patch(),
                },
            )

            payment = None
            if request.paid_amount > 0:
                payment = await self._record_initial_payment(tx, request, invoice_row, invoice_date)

            for product_id, units in priced.units_by_product.items():
                await deduct_sale_stock(
                    tx,
                    products[product_id],
                    units,
                    request.sales_rep_id,
                    self._deduction_order,
                )

            balance = await adjust_customer_balance(
                tx,
                request.customer_id,
                new_order_delta(request.grand_total, request.paid_amount),
            )

        logger.info(
            "invoice_created",
            invoice_no=invoice_no,
            order_no=order_no,
            total=request.grand_total,
            paid=request.paid_amount,
            customer_balance=balance,
        )

        return CreateInvoiceResult(
            order=order,
            invoice=Invoice.model_validate(invoice_row),
            items=items,
            payment=payment,
            customer_balance=balance,
            total_commission=priced.total_commission,
        )

    async def _record_initial_payment(
        self,
        tx: IRecordStore,
        request: CreateInvoiceRequest,
        invoice_row: Row,
        invoice_date: date,
    ) -> Row:
        method = request.payment_type
        deposit_account_id = None
        if method in (PaymentMethod.CASH, PaymentMethod.BANK) and request.deposit_account_id:
            if await tx.get("bank_accounts", request.deposit_account_id) is None:
                raise AccountNotFoundError(request.deposit_account_id)
            deposit_account_id = request.deposit_account_id

        payment = await tx.insert(
            "payments",
            {
                "invoice_id": invoice_row["id"],
                "customer_id": request.customer_id,
                "amount": request.paid_amount,
                "payment_date": invoice_date.isoformat(),
                "method": method.value,
                "cheque_no": request.cheque_no,
                "cheque_date": request.cheque_date.isoformat() if request.cheque_date else None,
                "cheque_status": (
                    ChequeStatus.PENDING.value if method == PaymentMethod.CHEQUE else None
                ),
                "deposit_account_id": deposit_account_id,
                "collected_by": request.sales_rep_id,
                "notes": "Payment on invoice",
            },
        )

        if deposit_account_id is not None:
            await record_transaction(
                tx,
                LedgerEntry(
                    transaction_type=TransactionType.DEPOSIT,
                    amount=request.paid_amount,
                    to_account_id=deposit_account_id,
                    description=f"Payment for {invoice_row['invoice_no']}",
                ),
                prefix="TXN",
                transaction_date=invoice_date,
                reference_no=invoice_row["invoice_no"],
                business_id=request.business_id,
            )
        return payment

    def to_response(self, result: CreateInvoiceResult) -> CreateInvoiceResponse:
        return CreateInvoiceResponse(
            message="Order created successfully",
            invoice_no=result.invoice.invoice_no,
            order_id=result.order["order_no"],
            invoice_id=result.invoice.id,
            order_record_id=result.order["id"],
            status=result.invoice.status.value,
            due_amount=result.invoice.due_amount,
            customer_balance=result.customer_balance,
        )
