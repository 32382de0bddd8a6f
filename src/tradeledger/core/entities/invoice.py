"""Invoice domain entities."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class InvoiceStatus(str, Enum):
    """Payment status of an invoice."""

    UNPAID = "Unpaid"
    PARTIAL = "Partial"
    PAID = "Paid"
    OVERDUE = "Overdue"


class Invoice(BaseModel):
    """Customer invoice, one per order."""

    id: int | None = None
    invoice_no: str
    order_id: int
    customer_id: int
    total_amount: float = 0.0
    paid_amount: float = 0.0
    due_amount: float = 0.0
    status: InvoiceStatus = InvoiceStatus.UNPAID
    due_date: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class InvoiceHistory(BaseModel):
    """Snapshot of an invoice taken before a total-changing edit."""

    id: int | None = None
    invoice_id: int
    previous_data: dict[str, Any] = Field(default_factory=dict)
    changed_by: int
    change_reason: str | None = None
    changed_at: datetime | None = None
