"""Company accounts and the append-only transaction ledger."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class TransactionType(str, Enum):
    DEPOSIT = "Deposit"
    WITHDRAWAL = "Withdrawal"
    TRANSFER = "Transfer"
    INVENTORY_DAMAGE = "INVENTORY_DAMAGE"


class BankAccount(BaseModel):
    """A company cash, bank or cheque-holding account."""

    id: int | None = None
    account_name: str
    account_type: str = "bank"
    business_id: int | None = None


class AccountTransaction(BaseModel):
    """Immutable ledger row. Reversal is an offsetting insert."""

    id: int | None = None
    transaction_no: str
    transaction_type: TransactionType
    from_account_id: int | None = None
    to_account_id: int | None = None
    amount: float
    description: str | None = None
    transaction_date: str | None = None
    reference_no: str | None = None
    cheque_status: str | None = None
    business_id: int | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime | None = None
