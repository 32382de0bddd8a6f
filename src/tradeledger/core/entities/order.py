"""Order domain entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class OrderStatus(str, Enum):
    """Order lifecycle."""

    PENDING = "Pending"
    PROCESSING = "Processing"
    CHECKING = "Checking"
    LOADING = "Loading"
    IN_TRANSIT = "In Transit"
    DELIVERED = "Delivered"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class Order(BaseModel):
    """Order header; totals mirror its items."""

    id: int | None = None
    order_no: str
    customer_id: int
    sales_rep_id: int | None = None
    business_id: int | None = None
    status: OrderStatus = OrderStatus.PENDING
    total_amount: float = 0.0
    order_date: str | None = None
    notes: str | None = None
    load_id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class OrderItem(BaseModel):
    """A priced order line. total_price is the authoritative value."""

    id: int | None = None
    order_id: int | None = None
    product_id: int
    quantity: float
    free_quantity: float = 0.0
    unit_price: float = 0.0
    actual_unit_price: float = 0.0
    actual_unit_cost: float = 0.0
    discount_percent: float = 0.0
    discount_amount: float = 0.0
    total_price: float = 0.0
    commission_earned: float = 0.0

    @property
    def units(self) -> float:
        """Units that leave stock: paid plus free."""
        return self.quantity + self.free_quantity


class CommissionStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"


class RepCommission(BaseModel):
    """Commission accrued by a sales rep for one order."""

    id: int | None = None
    rep_id: int
    order_id: int
    total_commission_amount: float
    status: CommissionStatus = CommissionStatus.PENDING
    payout_date: str | None = None
    created_at: datetime | None = None


class LoadingStatus(str, Enum):
    LOADING = "Loading"
    IN_TRANSIT = "In Transit"
    COMPLETED = "Completed"


class LoadingSheet(BaseModel):
    """Orders dispatched together on one lorry."""

    id: int | None = None
    load_no: str
    lorry_number: str
    driver_id: int | None = None
    helper_name: str | None = None
    loading_date: str | None = None
    status: LoadingStatus = LoadingStatus.LOADING
    created_at: datetime | None = None
