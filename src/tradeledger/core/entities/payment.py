"""Customer payment entity."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK = "bank"
    CHEQUE = "cheque"
    CREDIT = "credit"


class ChequeStatus(str, Enum):
    """Customer cheque lifecycle."""

    PENDING = "Pending"
    DEPOSITED = "Deposited"
    PASSED = "Passed"
    RETURNED = "Returned"


class Payment(BaseModel):
    """Money received against an invoice."""

    id: int | None = None
    invoice_id: int
    customer_id: int
    amount: float
    payment_date: str | None = None
    method: PaymentMethod
    cheque_no: str | None = None
    cheque_date: str | None = None
    cheque_status: ChequeStatus | None = None
    deposit_account_id: int | None = None
    collected_by: int | None = None
    notes: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_cheque(self) -> bool:
        return self.method == PaymentMethod.CHEQUE
