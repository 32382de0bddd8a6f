"""Customer domain entity."""

from datetime import datetime

from pydantic import BaseModel


class Customer(BaseModel):
    """A buyer with a running balance across its invoices."""

    id: int | None = None
    name: str
    owner_name: str | None = None
    phone: str | None = None
    business_id: int | None = None
    outstanding_balance: float = 0.0
    created_at: datetime | None = None
