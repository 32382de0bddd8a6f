"""
Monthly inter-branch billing.

An agency (Orange, Wireman) bills each sales branch once a month for the
agency's goods the branch sold. The bill is keyed by a fixed invoice number
per agency, branch and month, so re-running it updates rather than duplicates.
"""

import calendar
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date

from tradeledger.core.entities.business import Agency, Branch
from tradeledger.core.entities.order import OrderItem
from tradeledger.core.entities.product import Product
from tradeledger.core.exceptions import ValidationError
from tradeledger.core.services.totals import round_money


@dataclass(frozen=True)
class AgencyProfile:
    """How an agency is recognised on products and numbers its bills."""

    agency: Agency
    supplier_keyword: str
    prefixes: Mapping[Branch, str]
    label: str


AGENCY_PROFILES: dict[Agency, AgencyProfile] = {
    Agency.ORANGE: AgencyProfile(
        agency=Agency.ORANGE,
        supplier_keyword="Orange",
        prefixes={Branch.RETAIL: "OR-RE", Branch.DISTRIBUTION: "OR-DI"},
        label="Orange Agency",
    ),
    Agency.WIREMAN: AgencyProfile(
        agency=Agency.WIREMAN,
        supplier_keyword="Wireman",
        prefixes={Branch.RETAIL: "RE", Branch.DISTRIBUTION: "DI"},
        label="Wireman Agency",
    ),
}


@dataclass(frozen=True)
class BillingPeriod:
    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise ValidationError("month", "Month must be between 1 and 12", self.month)

    @classmethod
    def containing(cls, day: date) -> "BillingPeriod":
        return cls(year=day.year, month=day.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    @property
    def label(self) -> str:
        return self.first_day.strftime("%B %Y")


@dataclass(frozen=True)
class BillLine:
    """One aggregated product on an inter-branch bill, priced at cost."""

    product_id: int
    quantity: float
    unit_cost: float

    @property
    def total(self) -> float:
        return round_money(self.quantity * self.unit_cost)

    def to_order_item(self) -> OrderItem:
        return OrderItem(
            product_id=self.product_id,
            quantity=self.quantity,
            free_quantity=0,
            unit_price=self.unit_cost,
            actual_unit_price=self.unit_cost,
            actual_unit_cost=self.unit_cost,
            total_price=self.total,
        )


def bill_number(agency: Agency, branch: Branch, period: BillingPeriod) -> str:
    prefix = AGENCY_PROFILES[agency].prefixes[branch]
    return f"{prefix}-{period.year}-{period.month:02d}"


def supplier_matches(supplier_name: str | None, keyword: str) -> bool:
    """Case-insensitive substring match on the product's supplier name."""
    return bool(supplier_name) and keyword.lower() in supplier_name.lower()


def aggregate_sales(
    items: Iterable[OrderItem],
    products: Mapping[int, Product],
    keyword: str,
) -> list[BillLine]:
    """
    Roll sold quantities up by product at current cost price.

    Only paid quantity is billed; free units are the agency's own promotion.
    """
    quantities: dict[int, float] = {}
    for item in items:
        product = products.get(item.product_id)
        if product is None or not supplier_matches(product.supplier_name, keyword):
            continue
        quantities[item.product_id] = quantities.get(item.product_id, 0.0) + item.quantity

    return [
        BillLine(
            product_id=product_id,
            quantity=quantity,
            unit_cost=products[product_id].cost_price or 0.0,
        )
        for product_id, quantity in sorted(quantities.items())
    ]


def bill_total(lines: Iterable[BillLine]) -> float:
    return round_money(sum(line.total for line in lines))
