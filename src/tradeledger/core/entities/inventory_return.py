"""Inventory return entity."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class ReturnType(str, Enum):
    GOOD = "Good"
    DAMAGE = "Damage"


class ReturnStatus(str, Enum):
    """Where a return row is in its life."""

    PENDING = "Pending"
    COMPLETED = "Completed"
    RETURNED = "Returned"  # dispatched to the supplier
    BUSINESS_LOSS = "Business Loss"


class InventoryReturn(BaseModel):
    """Goods coming back, or found damaged on the shelf.

    customer_id is None for internal damage reports.
    """

    id: int | None = None
    return_number: str
    product_id: int
    location_id: int
    business_id: int | None = None
    customer_id: int | None = None
    invoice_id: int | None = None
    quantity: float
    return_type: ReturnType
    reason: str | None = None
    status: ReturnStatus = ReturnStatus.PENDING
    returned_by: int | None = None
    return_batch_id: int | None = None
    created_at: datetime | None = None
