"""
Stock adjustment rules.

Each product carries two counters, good and damaged, once globally on the
product and once per location. The two levels are kept independently: global
good stock never drops below zero on a sale while location rows may.
"""

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from tradeledger.core.entities.order import OrderItem, OrderStatus
from tradeledger.core.entities.product import ProductStock
from tradeledger.core.exceptions import ValidationError


@dataclass(frozen=True)
class StockLevels:
    """Good and damaged counters at one level."""

    good: float = 0.0
    damaged: float = 0.0

    @property
    def total(self) -> float:
        return self.good + self.damaged


DeductionOrder = Callable[[Sequence[ProductStock]], list[ProductStock]]


def pick_deduction_order(stocks: Sequence[ProductStock]) -> list[ProductStock]:
    """Largest holding first; ties by location id."""
    return sorted(stocks, key=lambda s: (-s.quantity, s.location_id))


def _require_positive(quantity: float) -> None:
    if quantity <= 0:
        raise ValidationError("quantity", "Quantity must be greater than zero", quantity)


def apply_sale(levels: StockLevels, units: float) -> StockLevels:
    """Global sale: good stock is clamped at zero."""
    return StockLevels(good=max(0.0, levels.good - units), damaged=levels.damaged)


def allocate_sale(
    stocks: Sequence[ProductStock],
    units: float,
    order: DeductionOrder = pick_deduction_order,
) -> dict[int, float]:
    """
    Decide how many units to take from each location.

    Locations are consumed greedily in the order given by ``order``. Anything
    left once every location is empty is charged to the first location, which
    then goes negative.
    """
    if not stocks or units <= 0:
        return {}

    ordered = order(stocks)
    taken: dict[int, float] = {}
    remaining = units
    for stock in ordered:
        if remaining <= 0:
            break
        available = max(0.0, stock.quantity)
        take = min(available, remaining)
        if take > 0:
            taken[stock.location_id] = taken.get(stock.location_id, 0.0) + take
            remaining -= take

    if remaining > 0:
        first = ordered[0].location_id
        taken[first] = taken.get(first, 0.0) + remaining
    return taken


def apply_good_return(levels: StockLevels, quantity: float) -> StockLevels:
    _require_positive(quantity)
    return StockLevels(good=levels.good + quantity, damaged=levels.damaged)


def receive_damaged(levels: StockLevels, quantity: float) -> StockLevels:
    """Damaged goods handed back by a customer; good stock already left on the sale."""
    _require_positive(quantity)
    return StockLevels(good=levels.good, damaged=levels.damaged + quantity)


def move_to_damaged(levels: StockLevels, quantity: float) -> StockLevels:
    """Good to damaged; good is floored at zero."""
    _require_positive(quantity)
    return StockLevels(
        good=max(0.0, levels.good - quantity),
        damaged=levels.damaged + quantity,
    )


def reduce_damaged(levels: StockLevels, quantity: float) -> StockLevels:
    """Damaged stock leaves the business (sent to supplier or written off)."""
    _require_positive(quantity)
    return StockLevels(good=levels.good, damaged=max(0.0, levels.damaged - quantity))


def receive_stock(levels: StockLevels, units: float) -> StockLevels:
    _require_positive(units)
    return StockLevels(good=levels.good + units, damaged=levels.damaged)


def units_by_product(items: Iterable[OrderItem]) -> dict[int, float]:
    totals: dict[int, float] = {}
    for item in items:
        totals[item.product_id] = totals.get(item.product_id, 0.0) + item.units
    return totals


def edit_diffs(old_items: Iterable[OrderItem], new_items: Iterable[OrderItem]) -> dict[int, float]:
    """
    Per-product change in units when an order is edited.

    A positive diff consumes more stock, a negative one gives it back.
    Unchanged products are left out.
    """
    old = units_by_product(old_items)
    new = units_by_product(new_items)
    diffs = {}
    for product_id in old.keys() | new.keys():
        diff = new.get(product_id, 0.0) - old.get(product_id, 0.0)
        if diff:
            diffs[product_id] = diff
    return diffs


def apply_edit_diff(levels: StockLevels, diff: float) -> StockLevels:
    return StockLevels(good=levels.good - diff, damaged=levels.damaged)


def cancellation_restores(
    current_status: OrderStatus | str, items: Iterable[OrderItem]
) -> dict[int, float]:
    """Units to put back when an order is cancelled; nothing if it already was."""
    if OrderStatus(current_status) == OrderStatus.CANCELLED:
        return {}
    return units_by_product(items)
