"""
Cheque state machines for customer and supplier cheques.

Customer cheques:

    Pending --deposit--> Deposited --clear--> Passed
       |                     |
       +--clear/return-------+--return--> Returned

Passed and Returned are terminal. Supplier cheques only know
pending -> passed | returned.
"""

from dataclasses import dataclass
from enum import Enum

from tradeledger.core.entities.ledger import TransactionType
from tradeledger.core.entities.payment import ChequeStatus, Payment
from tradeledger.core.entities.supplier import SupplierChequeStatus, SupplierPayment
from tradeledger.core.exceptions import InvalidTransitionError, ValidationError


class ChequeAction(str, Enum):
    DEPOSIT = "deposit"
    CLEAR = "clear"
    RETURN = "return"


class SupplierChequeAction(str, Enum):
    PASSED = "passed"
    RETURNED = "returned"


CHEQUE_TRANSITIONS: dict[tuple[ChequeStatus, ChequeAction], ChequeStatus] = {
    (ChequeStatus.PENDING, ChequeAction.DEPOSIT): ChequeStatus.DEPOSITED,
    (ChequeStatus.PENDING, ChequeAction.CLEAR): ChequeStatus.PASSED,
    (ChequeStatus.PENDING, ChequeAction.RETURN): ChequeStatus.RETURNED,
    (ChequeStatus.DEPOSITED, ChequeAction.CLEAR): ChequeStatus.PASSED,
    (ChequeStatus.DEPOSITED, ChequeAction.RETURN): ChequeStatus.RETURNED,
}

SUPPLIER_CHEQUE_TRANSITIONS: dict[
    tuple[SupplierChequeStatus, SupplierChequeAction], SupplierChequeStatus
] = {
    (SupplierChequeStatus.PENDING, SupplierChequeAction.PASSED): SupplierChequeStatus.PASSED,
    (SupplierChequeStatus.PENDING, SupplierChequeAction.RETURNED): SupplierChequeStatus.RETURNED,
}


@dataclass(frozen=True)
class LedgerEntry:
    """An account transaction a cheque action must append."""

    transaction_type: TransactionType
    amount: float
    from_account_id: int | None = None
    to_account_id: int | None = None
    description: str = ""


@dataclass(frozen=True)
class ChequeOutcome:
    """Everything a customer cheque action changes."""

    status: ChequeStatus
    deposit_account_id: int | None
    # Signed change to the customer balance; the invoice's paid amount moves
    # by the opposite amount.
    balance_delta: float = 0.0
    entry: LedgerEntry | None = None

    @property
    def reverses_payment(self) -> bool:
        return self.status == ChequeStatus.RETURNED


@dataclass(frozen=True)
class SupplierChequeOutcome:
    status: SupplierChequeStatus
    due_delta: float = 0.0
    entry: LedgerEntry | None = None

    @property
    def reverses_payment(self) -> bool:
        return self.status == SupplierChequeStatus.RETURNED


def next_cheque_status(current: ChequeStatus | str | None, action: ChequeAction) -> ChequeStatus:
    if current is None:
        raise InvalidTransitionError("cheque", None, action.value)
    state = ChequeStatus(current)
    try:
        return CHEQUE_TRANSITIONS[(state, action)]
    except KeyError:
        raise InvalidTransitionError("cheque", state.value, action.value) from None


def plan_cheque_action(
    payment: Payment,
    action: ChequeAction,
    deposit_account_id: int | None = None,
) -> ChequeOutcome:
    """Decide the new state and side effects of a customer cheque action."""
    if not payment.is_cheque:
        raise ValidationError("paymentId", "Payment is not a cheque", payment.id)

    status = next_cheque_status(payment.cheque_status, action)

    if action == ChequeAction.DEPOSIT:
        if deposit_account_id is None:
            raise ValidationError("depositAccountId", "Deposit account is required")
        return ChequeOutcome(
            status=status,
            deposit_account_id=deposit_account_id,
            entry=LedgerEntry(
                transaction_type=TransactionType.DEPOSIT,
                amount=payment.amount,
                to_account_id=deposit_account_id,
                description=f"Cheque deposit {payment.cheque_no or ''}".strip(),
            ),
        )

    if action == ChequeAction.CLEAR:
        return ChequeOutcome(status=status, deposit_account_id=payment.deposit_account_id)

    # Bounce: the debt comes back, and the deposit is offset only if one was recorded
    entry = None
    if payment.deposit_account_id is not None:
        entry = LedgerEntry(
            transaction_type=TransactionType.WITHDRAWAL,
            amount=payment.amount,
            from_account_id=payment.deposit_account_id,
            description=f"Cheque returned {payment.cheque_no or ''}".strip(),
        )
    return ChequeOutcome(
        status=status,
        deposit_account_id=payment.deposit_account_id,
        balance_delta=payment.amount,
        entry=entry,
    )


def plan_supplier_cheque_action(
    payment: SupplierPayment, action: SupplierChequeAction
) -> SupplierChequeOutcome:
    """Decide the new state and side effects of a supplier cheque action."""
    if not payment.is_cheque:
        raise ValidationError("paymentId", "Supplier payment is not a cheque", payment.id)
    current = payment.cheque_status
    if current is None:
        raise InvalidTransitionError("supplier cheque", None, action.value)
    try:
        status = SUPPLIER_CHEQUE_TRANSITIONS[(SupplierChequeStatus(current), action)]
    except KeyError:
        raise InvalidTransitionError(
            "supplier cheque", SupplierChequeStatus(current).value, action.value
        ) from None

    if action == SupplierChequeAction.PASSED:
        return SupplierChequeOutcome(
            status=status,
            entry=LedgerEntry(
                transaction_type=TransactionType.WITHDRAWAL,
                amount=payment.amount,
                from_account_id=payment.company_account_id,
                description=f"Supplier cheque passed {payment.cheque_number or ''}".strip(),
            ),
        )
    return SupplierChequeOutcome(status=status, due_delta=payment.amount)
