"""
Supplier side: purchases, payments, cheques, damaged-stock returns and claims.
"""

from dataclasses import dataclass, field
from datetime import date

from tradeledger.application.dto.requests import (
    CreatePurchaseRequest,
    MarkLossRequest,
    ReturnStockRequest,
    SettleClaimRequest,
    SupplierChequeActionRequest,
    SupplierPaymentRequest,
)
from tradeledger.application.dto.responses import (
    CreatePurchaseResponse,
    MarkLossResponse,
    PurchaseResponse,
    ReturnBatchResponse,
    ReturnStockResponse,
    SettleClaimResponse,
    SupplierPaymentResponse,
    SupplierPaymentResultResponse,
)
from tradeledger.application.postings import (
    adjust_supplier_due,
    load_location_stock,
    load_product,
    load_supplier,
    location_levels,
    lock_rows,
    next_sequential,
    product_levels,
    record_transaction,
    write_location_levels,
    write_product_levels,
)
from tradeledger.application.use_cases.base import StoreUseCase
from tradeledger.config import get_logger, get_settings
from tradeledger.core.entities import (
    InventoryReturn,
    Purchase,
    PurchaseStatus,
    ReturnBatchStatus,
    ReturnStatus,
    ReturnType,
    SupplierChequeStatus,
    SupplierPayment,
    SupplierReturnBatch,
    TransactionType,
)
from tradeledger.core.exceptions import (
    AccountNotFoundError,
    InvalidTransitionError,
    NotFoundError,
    PaymentNotFoundError,
    PurchaseNotFoundError,
    ReturnBatchNotFoundError,
    ValidationError,
)
from tradeledger.core.interfaces.record_store import IRecordStore, Row
from tradeledger.core.services import numbering
from tradeledger.core.services.balance import purchase_status
from tradeledger.core.services.cheques import (
    LedgerEntry,
    SupplierChequeAction,
    plan_supplier_cheque_action,
)
from tradeledger.core.services.stock_rules import receive_stock, reduce_damaged
from tradeledger.core.services.totals import actual_unit_cost, round_money

logger = get_logger(__name__)

MAIN_WAREHOUSE = "Main Warehouse"


async def load_purchase(tx: IRecordStore, purchase_id: int) -> Purchase:
    row = await tx.get("purchases", purchase_id)
    if row is None:
        raise PurchaseNotFoundError(purchase_id)
    return Purchase.model_validate(row)


async def post_purchase_payment(tx: IRecordStore, purchase: Purchase, amount: float) -> Row:
    """Move a purchase's paid amount by a signed amount and re-derive its status."""
    paid = round_money(max(0.0, purchase.paid_amount + amount))
    await tx.update(
        "purchases",
        {"id": purchase.id},
        {
            "paid_amount": paid,
            "payment_status": purchase_status(paid, purchase.total_amount).value,
        },
    )
    return await tx.get("purchases", purchase.id)


async def eligible_damage_items(
    tx: IRecordStore, item_ids: list[int]
) -> tuple[list[InventoryReturn], int]:
    """Damaged return rows still waiting for a supplier decision, plus the skip count."""
    rows = {row["id"]: row for row in await tx.fetch("inventory_returns", {"id": item_ids})}
    missing = [item_id for item_id in item_ids if item_id not in rows]
    if missing:
        raise NotFoundError(missing[0], entity="Return item")

    items = [InventoryReturn.model_validate(rows[item_id]) for item_id in sorted(set(item_ids))]
    eligible = [
        item
        for item in items
        if item.return_type == ReturnType.DAMAGE and item.status == ReturnStatus.PENDING
    ]
    return eligible, len(items) - len(eligible)


async def write_off_damaged(tx: IRecordStore, item: InventoryReturn) -> float:
    """Take a return row's units out of damaged stock. Returns their cost value."""
    product = await load_product(tx, item.product_id)
    await write_product_levels(
        tx, product.id, reduce_damaged(product_levels(product), item.quantity)
    )
    stock = await load_location_stock(tx, product.id, item.location_id)
    await write_location_levels(
        tx, product.id, item.location_id, reduce_damaged(location_levels(stock), item.quantity)
    )
    return round_money(product.cost_price * item.quantity)


@dataclass
class CreatePurchaseResult:
    purchase: Row
    supplier_due: float


class CreatePurchaseUseCase(StoreUseCase):
    """
    Receive goods from a supplier.

    Stock goes into the receiving location (the main warehouse by default) and
    the product's cost becomes the landed cost including free units. The
    supplier's due grows by the purchase total.
    """

    async def execute(self, request: CreatePurchaseRequest) -> CreatePurchaseResult:
        logger.info(
            "create_purchase_started",
            supplier_id=request.supplier_id,
            items=len(request.items),
            total=request.total_amount,
        )
        purchase_date = request.purchase_date or date.today()

        store = await self._get_store()
        async with store.transaction() as tx:
            await load_supplier(tx, request.supplier_id)
            await lock_rows(tx, products=sorted({item.product_id for item in request.items}))
            location_id = await self._receiving_location(tx, request)

            purchase = await tx.insert(
                "purchases",
                {
                    "purchase_no": await next_sequential(tx, "purchases", "PO"),
                    "supplier_id": request.supplier_id,
                    "business_id": request.business_id,
                    "invoice_no": request.invoice_number,
                    "purchase_date": purchase_date.isoformat(),
                    "total_amount": request.total_amount,
                    "paid_amount": 0,
                    "payment_status": PurchaseStatus.UNPAID.value,
                },
            )

            for item in request.items:
                product = await load_product(tx, item.product_id)
                units = item.quantity + item.free_quantity
                cost = round_money(actual_unit_cost(item.total, item.quantity, item.free_quantity))
                await tx.insert(
                    "purchase_items",
                    {
                        "purchase_id": purchase["id"],
                        "product_id": product.id,
                        "quantity": item.quantity,
                        "free_quantity": item.free_quantity,
                        "unit_cost": item.unit_price,
                        "actual_unit_cost": cost,
                        "total_cost": item.total,
                    },
                )

                prices = {"cost_price": cost, "actual_cost_price": cost}
                if item.mrp is not None:
                    prices["mrp"] = item.mrp
                if item.selling_price is not None:
                    prices["selling_price"] = item.selling_price
                await write_product_levels(
                    tx, product.id, receive_stock(product_levels(product), units), **prices
                )
                stock = await load_location_stock(tx, product.id, location_id)
                await write_location_levels(
                    tx, product.id, location_id, receive_stock(location_levels(stock), units)
                )

            due = await adjust_supplier_due(
                tx, request.supplier_id, request.total_amount, floor_at_zero=False
            )

        logger.info("purchase_created", purchase_no=purchase["purchase_no"], supplier_due=due)
        return CreatePurchaseResult(purchase=purchase, supplier_due=due)

    async def _receiving_location(self, tx: IRecordStore, request: CreatePurchaseRequest) -> int:
        if request.location_id is not None:
            if await tx.get("locations", request.location_id) is None:
                raise NotFoundError(request.location_id, entity="Location")
            return request.location_id
        warehouse = await tx.fetch_one("locations", {"name": MAIN_WAREHOUSE})
        if warehouse is None:
            warehouse = await tx.insert(
                "locations", {"name": MAIN_WAREHOUSE, "business_id": request.business_id}
            )
        return warehouse["id"]

    def to_response(self, result: CreatePurchaseResult) -> CreatePurchaseResponse:
        return CreatePurchaseResponse(
            message="Purchase recorded successfully",
            purchase=PurchaseResponse.model_validate(result.purchase),
            supplier_due=result.supplier_due,
        )


@dataclass
class SupplierPaymentResult:
    payment: Row
    purchase: Row
    supplier_due: float
    transaction: Row | None = None


def supplier_payment_response(
    message: str, result: SupplierPaymentResult
) -> SupplierPaymentResultResponse:
    return SupplierPaymentResultResponse(
        message=message,
        payment=SupplierPaymentResponse.model_validate(result.payment),
        purchase=PurchaseResponse.model_validate(result.purchase),
        supplier_due=result.supplier_due,
        transaction_no=result.transaction["transaction_no"] if result.transaction else None,
    )


class RecordSupplierPaymentUseCase(StoreUseCase):
    """
    Pay a supplier against a purchase.

    Cash and bank payments leave the company account at once. A cheque counts
    as paid straight away but only leaves the account when it passes.
    """

    async def execute(self, request: SupplierPaymentRequest) -> SupplierPaymentResult:
        payment_date = request.payment_date or date.today()
        is_cheque = request.method == "cheque"

        store = await self._get_store()
        async with store.transaction() as tx:
            purchase = await load_purchase(tx, request.purchase_id)
            if request.account_id is None:
                raise ValidationError("accountId", "Company account is required")
            if await tx.get("bank_accounts", request.account_id) is None:
                raise AccountNotFoundError(request.account_id)

            payment = await tx.insert(
                "supplier_payments",
                {
                    "payment_number": await next_sequential(tx, "supplier_payments", "SP"),
                    "purchase_id": purchase.id,
                    "supplier_id": purchase.supplier_id,
                    "company_account_id": request.account_id,
                    "amount": request.amount,
                    "payment_date": payment_date.isoformat(),
                    "payment_method": request.method,
                    "cheque_number": request.cheque_number if is_cheque else None,
                    "cheque_date": (
                        request.cheque_date.isoformat()
                        if is_cheque and request.cheque_date
                        else None
                    ),
                    "cheque_status": SupplierChequeStatus.PENDING.value if is_cheque else None,
                    "notes": request.notes,
                },
            )
            updated_purchase = await post_purchase_payment(tx, purchase, request.amount)
            due = await adjust_supplier_due(tx, purchase.supplier_id, -request.amount)

            transaction = None
            if not is_cheque:
                transaction = await record_transaction(
                    tx,
                    LedgerEntry(
                        transaction_type=TransactionType.WITHDRAWAL,
                        amount=request.amount,
                        from_account_id=request.account_id,
                        description=f"Supplier payment {payment['payment_number']}",
                    ),
                    prefix="SPY",
                    transaction_date=payment_date,
                    reference_no=purchase.purchase_no,
                    business_id=purchase.business_id,
                )

        logger.info(
            "supplier_payment_recorded",
            payment_number=payment["payment_number"],
            purchase_no=purchase.purchase_no,
            supplier_due=due,
        )
        return SupplierPaymentResult(
            payment=payment, purchase=updated_purchase, supplier_due=due, transaction=transaction
        )

    def to_response(self, result: SupplierPaymentResult) -> SupplierPaymentResultResponse:
        return supplier_payment_response("Supplier payment recorded", result)


class SupplierChequeActionUseCase(StoreUseCase):
    """Mark a cheque issued to a supplier as passed or returned."""

    async def execute(self, request: SupplierChequeActionRequest) -> SupplierPaymentResult:
        action_date = request.action_date or date.today()

        store = await self._get_store()
        async with store.transaction() as tx:
            row = await tx.get("supplier_payments", request.payment_id)
            if row is None:
                raise PaymentNotFoundError(request.payment_id)
            payment = SupplierPayment.model_validate(row)
            outcome = plan_supplier_cheque_action(payment, request.action)

            await tx.update(
                "supplier_payments", {"id": payment.id}, {"cheque_status": outcome.status.value}
            )
            purchase = await load_purchase(tx, payment.purchase_id)

            transaction = None
            if outcome.entry is not None:
                transaction = await record_transaction(
                    tx,
                    outcome.entry,
                    prefix="CHQ",
                    transaction_date=action_date,
                    reference_no=payment.payment_number,
                    business_id=purchase.business_id,
                    cheque_status=outcome.status.value,
                )

            if request.action == SupplierChequeAction.RETURNED:
                updated_purchase = await post_purchase_payment(tx, purchase, -payment.amount)
                due = await adjust_supplier_due(
                    tx, payment.supplier_id, outcome.due_delta, floor_at_zero=False
                )
            else:
                updated_purchase = await tx.get("purchases", purchase.id)
                due = (await load_supplier(tx, payment.supplier_id)).due_payment

            updated = await tx.get("supplier_payments", payment.id)

        logger.info(
            "supplier_cheque_updated",
            payment_number=payment.payment_number,
            status=outcome.status.value,
        )
        return SupplierPaymentResult(
            payment=updated, purchase=updated_purchase, supplier_due=due, transaction=transaction
        )

    def to_response(self, result: SupplierPaymentResult) -> SupplierPaymentResultResponse:
        status = result.payment["cheque_status"]
        return supplier_payment_response(f"Supplier cheque marked as {status}", result)


@dataclass
class ReturnStockResult:
    batch: Row
    processed: int
    skipped: int


class ReturnStockToSupplierUseCase(StoreUseCase):
    """
    Dispatch damaged return items back to their supplier as one gate-pass batch.

    The units leave damaged stock now; the credit is settled later as a claim.
    """

    async def execute(self, request: ReturnStockRequest) -> ReturnStockResult:
        store = await self._get_store()
        async with store.transaction() as tx:
            await load_supplier(tx, request.supplier_id)
            eligible, skipped = await eligible_damage_items(tx, request.item_ids)
            if not eligible:
                raise ValidationError("itemIds", "No eligible damaged items to return")

            today = date.today()
            existing = await tx.count(
                "supplier_return_batches", {"batch_number__startswith": f"GP-{today:%Y%m%d}-"}
            )
            batch = await tx.insert(
                "supplier_return_batches",
                {
                    "batch_number": numbering.daily("GP", today, existing),
                    "supplier_id": request.supplier_id,
                    "total_items": len(eligible),
                    "total_value": 0,
                    "status": ReturnBatchStatus.PENDING_CREDIT.value,
                },
            )

            total_value = 0.0
            for item in eligible:
                total_value += await write_off_damaged(tx, item)
                await tx.update(
                    "inventory_returns",
                    {"id": item.id},
                    {"status": ReturnStatus.RETURNED.value, "return_batch_id": batch["id"]},
                )
            await tx.update(
                "supplier_return_batches",
                {"id": batch["id"]},
                {"total_value": round_money(total_value)},
            )
            batch = await tx.get("supplier_return_batches", batch["id"])

        logger.info(
            "supplier_return_dispatched",
            batch_number=batch["batch_number"],
            items=len(eligible),
            skipped=skipped,
            total_value=batch["total_value"],
        )
        return ReturnStockResult(batch=batch, processed=len(eligible), skipped=skipped)

    def to_response(self, result: ReturnStockResult) -> ReturnStockResponse:
        return ReturnStockResponse(
            message=f"Gate pass {result.batch['batch_number']} created",
            batch=ReturnBatchResponse.model_validate(result.batch),
            processed=result.processed,
            skipped=result.skipped,
        )


@dataclass
class MarkLossResult:
    processed: int
    skipped: int
    loss_value: float = 0.0


class MarkBusinessLossUseCase(StoreUseCase):
    """Write damaged return items off when the supplier will not take them back."""

    async def execute(self, request: MarkLossRequest) -> MarkLossResult:
        store = await self._get_store()
        async with store.transaction() as tx:
            eligible, skipped = await eligible_damage_items(tx, request.item_ids)
            if not eligible:
                raise ValidationError("itemIds", "No eligible damaged items to write off")

            loss_value = 0.0
            for item in eligible:
                loss_value += await write_off_damaged(tx, item)
                note = f"[LOSS] {request.reason}" if request.reason else "[LOSS]"
                await tx.update(
                    "inventory_returns",
                    {"id": item.id},
                    {
                        "status": ReturnStatus.BUSINESS_LOSS.value,
                        "reason": " ".join(filter(None, [item.reason, note])),
                    },
                )

        logger.info(
            "business_loss_recorded",
            items=len(eligible),
            skipped=skipped,
            loss_value=round_money(loss_value),
        )
        return MarkLossResult(
            processed=len(eligible), skipped=skipped, loss_value=round_money(loss_value)
        )

    def to_response(self, result: MarkLossResult) -> MarkLossResponse:
        return MarkLossResponse(
            message=f"{result.processed} items marked as business loss",
            processed=result.processed,
            skipped=result.skipped,
        )


@dataclass
class SettleClaimResult:
    credit_notes: list[str] = field(default_factory=list)
    total_allocated: float = 0.0
    supplier_due: float = 0.0


class SettleSupplierClaimUseCase(StoreUseCase):
    """
    Settle a returned batch's credit against the supplier's open purchases.

    Each allocation becomes a credit-note payment on its purchase. The
    allocations may not exceed the negotiated credit beyond a small tolerance.
    """

    async def execute(self, request: SettleClaimRequest) -> SettleClaimResult:
        tolerance = get_settings().ledger.claim_tolerance
        settlement_date = request.settlement_date or date.today()
        total = round_money(sum(a.amount for a in request.allocations))

        store = await self._get_store()
        async with store.transaction() as tx:
            await load_supplier(tx, request.supplier_id)
            row = await tx.get("supplier_return_batches", request.batch_id)
            if row is None:
                raise ReturnBatchNotFoundError(request.batch_id)
            batch = SupplierReturnBatch.model_validate(row)
            if batch.supplier_id != request.supplier_id:
                raise ValidationError(
                    "batchId", "Batch belongs to a different supplier", request.batch_id
                )
            if batch.status == ReturnBatchStatus.COMPLETED:
                raise InvalidTransitionError("return batch", batch.status.value, "settle")
            if total > request.negotiated_amount + tolerance:
                raise ValidationError(
                    "allocations",
                    f"Allocated {total} exceeds negotiated credit {request.negotiated_amount}",
                    total,
                )

            credit_notes = []
            for allocation in request.allocations:
                purchase = await load_purchase(tx, allocation.purchase_id)
                if purchase.supplier_id != request.supplier_id:
                    raise ValidationError(
                        "purchaseId",
                        f"Purchase {purchase.purchase_no} belongs to a different supplier",
                        purchase.id,
                    )
                payment_number = await next_sequential(tx, "supplier_payments", "CN")
                await tx.insert(
                    "supplier_payments",
                    {
                        "payment_number": payment_number,
                        "purchase_id": purchase.id,
                        "supplier_id": request.supplier_id,
                        "amount": allocation.amount,
                        "payment_date": settlement_date.isoformat(),
                        "payment_method": "return_credit",
                        "notes": request.approval_note or f"Claim for {batch.batch_number}",
                    },
                )
                await post_purchase_payment(tx, purchase, allocation.amount)
                credit_notes.append(payment_number)

            await tx.update(
                "supplier_return_batches",
                {"id": batch.id},
                {"status": ReturnBatchStatus.COMPLETED.value},
            )
            for item_row in await tx.fetch("inventory_returns", {"return_batch_id": batch.id}):
                await tx.update(
                    "inventory_returns",
                    {"id": item_row["id"]},
                    {
                        "status": ReturnStatus.COMPLETED.value,
                        "reason": " ".join(
                            filter(None, [item_row.get("reason"), f"[CLAIMED: {batch.batch_number}]"])
                        ),
                    },
                )
            due = await adjust_supplier_due(tx, request.supplier_id, -total)

        logger.info(
            "supplier_claim_settled",
            batch_number=batch.batch_number,
            total=total,
            credit_notes=len(credit_notes),
        )
        return SettleClaimResult(credit_notes=credit_notes, total_allocated=total, supplier_due=due)

    def to_response(self, result: SettleClaimResult) -> SettleClaimResponse:
        return SettleClaimResponse(
            message="Claim settled successfully",
            credit_notes=result.credit_notes,
            total_allocated=result.total_allocated,
            supplier_due=result.supplier_due,
        )
