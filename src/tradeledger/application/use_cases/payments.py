"""Customer payments and the cheque lifecycle."""

from dataclasses import dataclass
from datetime import date

from tradeledger.application.dto.requests import ChequeActionRequest, RecordPaymentRequest
from tradeledger.application.dto.responses import (
    ChequeActionResponse,
    PaymentResponse,
    RecordPaymentResponse,
)
from tradeledger.application.postings import (
    adjust_customer_balance,
    lock_rows,
    record_transaction,
    utcnow_iso,
    write_invoice_amounts,
)
from tradeledger.application.use_cases.base import StoreUseCase
from tradeledger.config import get_logger
from tradeledger.core.entities import (
    ChequeStatus,
    Invoice,
    Payment,
    PaymentMethod,
    TransactionType,
)
from tradeledger.core.exceptions import (
    AccountNotFoundError,
    OrderNotFoundError,
    PaymentNotFoundError,
    ValidationError,
)
from tradeledger.core.interfaces.record_store import Row
from tradeledger.core.services.balance import apply_payment, payment_delta, reverse_payment
from tradeledger.core.services.cheques import ChequeAction, LedgerEntry, plan_cheque_action

logger = get_logger(__name__)


@dataclass
class RecordPaymentResult:
    """Result of recording a payment."""

    payment: Row
    invoice: Invoice
    customer_balance: float
    transaction: Row | None = None


class RecordPaymentUseCase(StoreUseCase):
    """Apply a payment to an order's invoice and the customer's balance."""

    async def execute(
        self, request: RecordPaymentRequest, collected_by: int | None = None
    ) -> RecordPaymentResult:
        logger.info(
            "record_payment_started",
            order_id=request.order_id,
            amount=request.amount,
            method=request.method.value,
        )
        payment_date = request.payment_date or date.today()

        store = await self._get_store()
        async with store.transaction() as tx:
            order = await tx.get("orders", request.order_id)
            if order is None:
                raise OrderNotFoundError(request.order_id)
            invoice_row = await tx.fetch_one("invoices", {"order_id": request.order_id})
            if invoice_row is None:
                raise ValidationError(
                    "orderId", "No invoice found for this order", request.order_id
                )

            locked = await lock_rows(
                tx, customers=[invoice_row["customer_id"]], invoices=[invoice_row["id"]]
            )
            invoice = Invoice.model_validate(locked.invoices[invoice_row["id"]])

            deposit_account_id = None
            if request.method in (PaymentMethod.CASH, PaymentMethod.BANK):
                deposit_account_id = request.deposit_account_id
                if deposit_account_id is not None and (
                    await tx.get("bank_accounts", deposit_account_id) is None
                ):
                    raise AccountNotFoundError(deposit_account_id)

            is_cheque = request.method == PaymentMethod.CHEQUE
            payment = await tx.insert(
                "payments",
                {
                    "invoice_id": invoice.id,
                    "customer_id": invoice.customer_id,
                    "amount": request.amount,
                    "payment_date": payment_date.isoformat(),
                    "method": request.method.value,
                    "cheque_no": request.cheque_no if is_cheque else None,
                    "cheque_date": (
                        request.cheque_date.isoformat()
                        if is_cheque and request.cheque_date
                        else None
                    ),
                    "cheque_status": ChequeStatus.PENDING.value if is_cheque else None,
                    "deposit_account_id": deposit_account_id,
                    "collected_by": collected_by,
                    "notes": request.notes,
                    "updated_at": utcnow_iso(),
                },
            )

            amounts = apply_payment(invoice, request.amount)
            await write_invoice_amounts(tx, invoice.id, amounts)
            balance = await adjust_customer_balance(
                tx, invoice.customer_id, payment_delta(request.amount)
            )

            transaction = None
            if deposit_account_id is not None:
                transaction = await record_transaction(
                    tx,
                    LedgerEntry(
                        transaction_type=TransactionType.DEPOSIT,
                        amount=request.amount,
                        to_account_id=deposit_account_id,
                        description=f"Payment for {invoice.invoice_no}",
                    ),
                    prefix="TXN",
                    transaction_date=payment_date,
                    reference_no=invoice.invoice_no,
                    business_id=order.get("business_id"),
                )

            updated = Invoice.model_validate(await tx.get("invoices", invoice.id))

        logger.info(
            "payment_recorded",
            payment_id=payment["id"],
            invoice_no=updated.invoice_no,
            status=updated.status.value,
            customer_balance=balance,
        )
        return RecordPaymentResult(
            payment=payment, invoice=updated, customer_balance=balance, transaction=transaction
        )

    def to_response(self, result: RecordPaymentResult) -> RecordPaymentResponse:
        return RecordPaymentResponse(
            message="Payment recorded successfully",
            payment=PaymentResponse.model_validate(result.payment),
            invoice_status=result.invoice.status.value,
            paid_amount=result.invoice.paid_amount,
            due_amount=result.invoice.due_amount,
            customer_balance=result.customer_balance,
            transaction_no=result.transaction["transaction_no"] if result.transaction else None,
        )


@dataclass
class ChequeActionResult:
    """Result of a cheque action."""

    payment: Row
    transaction: Row | None = None
    invoice: Invoice | None = None
    customer_balance: float | None = None


class ChequeActionUseCase(StoreUseCase):
    """
    Move a customer cheque through Pending, Deposited, Passed and Returned.

    A bounce gives the payment back to the invoice and the debt back to the
    customer, and offsets the deposit in the ledger when there was one.
    """

    async def execute(self, request: ChequeActionRequest) -> ChequeActionResult:
        logger.info(
            "cheque_action_started", payment_id=request.payment_id, action=request.action.value
        )
        action_date = request.action_date or date.today()

        store = await self._get_store()
        async with store.transaction() as tx:
            row = await tx.get("payments", request.payment_id)
            if row is None:
                raise PaymentNotFoundError(request.payment_id)
            payment = Payment.model_validate(row)

            if request.action == ChequeAction.DEPOSIT and request.deposit_account_id is not None:
                if await tx.get("bank_accounts", request.deposit_account_id) is None:
                    raise AccountNotFoundError(request.deposit_account_id)

            outcome = plan_cheque_action(payment, request.action, request.deposit_account_id)

            patch = {
                "cheque_status": outcome.status.value,
                "deposit_account_id": outcome.deposit_account_id,
                "updated_at": utcnow_iso(),
            }
            if request.action == ChequeAction.RETURN and request.reversal_note:
                patch["notes"] = " | ".join(
                    filter(None, [payment.notes, f"Returned: {request.reversal_note}"])
                )

            invoice = None
            balance = None
            if outcome.reverses_payment:
                locked = await lock_rows(
                    tx, customers=[payment.customer_id], invoices=[payment.invoice_id]
                )
                current = Invoice.model_validate(locked.invoices[payment.invoice_id])
                await write_invoice_amounts(
                    tx, current.id, reverse_payment(current, payment.amount)
                )
                balance = await adjust_customer_balance(
                    tx, payment.customer_id, outcome.balance_delta
                )
                invoice = Invoice.model_validate(await tx.get("invoices", current.id))

            await tx.update("payments", {"id": payment.id}, patch)

            transaction = None
            if outcome.entry is not None:
                reference = invoice.invoice_no if invoice else payment.cheque_no
                transaction = await record_transaction(
                    tx,
                    outcome.entry,
                    prefix="DEP" if request.action == ChequeAction.DEPOSIT else "RET",
                    transaction_date=action_date,
                    reference_no=reference,
                    cheque_status=outcome.status.value,
                )

            updated = await tx.get("payments", payment.id)

        logger.info(
            "cheque_action_completed",
            payment_id=payment.id,
            status=outcome.status.value,
            reversed=outcome.reverses_payment,
        )
        return ChequeActionResult(
            payment=updated, transaction=transaction, invoice=invoice, customer_balance=balance
        )

    def to_response(self, result: ChequeActionResult) -> ChequeActionResponse:
        status = result.payment["cheque_status"]
        return ChequeActionResponse(
            message=f"Cheque marked as {status}",
            payment=PaymentResponse.model_validate(result.payment),
            transaction_no=result.transaction["transaction_no"] if result.transaction else None,
            invoice_status=result.invoice.status.value if result.invoice else None,
            customer_balance=result.customer_balance,
        )
