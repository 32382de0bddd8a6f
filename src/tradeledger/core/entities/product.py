"""Product and stock entities."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel


class CommissionType(str, Enum):
    """How a product pays its sales rep."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Product(BaseModel):
    """Product master with global good and damaged counters."""

    id: int | None = None
    sku: str | None = None
    name: str
    supplier_name: str | None = None
    cost_price: float = 0.0
    actual_cost_price: float | None = None
    selling_price: float = 0.0
    mrp: float = 0.0
    stock_quantity: float = 0.0
    damaged_quantity: float = 0.0
    commission_type: CommissionType | None = None
    commission_value: float = 0.0

    @property
    def unit_cost(self) -> float:
        """Cost used for margin reporting."""
        return self.actual_cost_price if self.actual_cost_price else self.cost_price


class Location(BaseModel):
    """A warehouse, shop or lorry holding stock."""

    id: int | None = None
    name: str
    business_id: int | None = None


class LocationAssignment(BaseModel):
    """Links a sales rep to a location they sell from."""

    id: int | None = None
    user_id: int
    location_id: int


class ProductStock(BaseModel):
    """Per-location mirror of the product counters."""

    id: int | None = None
    product_id: int
    location_id: int
    quantity: float = 0.0
    damaged_quantity: float = 0.0
    last_updated: datetime | None = None
