"""
Order and invoice total calculation.

Line totals come from the caller and are stored as given. This module spreads
the order-level extra discount across lines, derives the effective unit price
for margin reporting and accrues the sales rep's commission.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from tradeledger.core.entities.order import OrderItem
from tradeledger.core.entities.product import CommissionType, Product
from tradeledger.core.exceptions import ValidationError

MONEY_PLACES = 2


def round_money(value: float) -> float:
    """Round a currency amount, folding -0.0 into 0.0."""
    return round(value, MONEY_PLACES) + 0.0


@dataclass(frozen=True)
class LineInput:
    """One requested order line."""

    product_id: int
    quantity: float
    total: float
    free_quantity: float = 0.0
    unit_price: float = 0.0
    discount_percent: float = 0.0
    discount_amount: float = 0.0

    @property
    def units(self) -> float:
        return self.quantity + self.free_quantity


@dataclass(frozen=True)
class PricedOrder:
    """Result of pricing an order."""

    items: list[OrderItem]
    gross_subtotal: float
    extra_discount: float
    total_commission: float
    units_by_product: dict[int, float] = field(default_factory=dict)

    @property
    def net_total(self) -> float:
        return round_money(self.gross_subtotal - self.extra_discount)


def line_total(quantity: float, unit_price: float, discount_amount: float = 0.0) -> float:
    """Nominal line value. Stored totals are caller-supplied, this is for checks."""
    return round_money(quantity * unit_price - discount_amount)


def gross_subtotal(totals: Sequence[float]) -> float:
    return round_money(sum(totals))


def resolve_extra_discount(
    gross: float, amount: float | None = None, percent: float | None = None
) -> float:
    """An explicit amount wins over a percentage of the gross subtotal."""
    if amount:
        return amount
    if percent:
        return round_money(gross * percent / 100)
    return 0.0


def allocate_extra_discount(totals: Sequence[float], extra_discount: float) -> list[float]:
    """Share the order discount across lines in proportion to line totals."""
    gross = sum(totals)
    if gross <= 0 or not extra_discount:
        return [0.0 for _ in totals]
    return [(total / gross) * extra_discount for total in totals]


def actual_unit_price(
    total: float, discount_share: float, quantity: float, free_quantity: float = 0.0
) -> float:
    """Net line value spread over paid and free units."""
    units = quantity + free_quantity
    if units <= 0:
        return 0.0
    return (total - discount_share) / units


def commission_for_line(
    commission_type: CommissionType | str | None,
    rate: float,
    unit_price: float,
    quantity: float,
) -> float:
    """
    Rep commission for one line.

    Percentage rates apply to the undiscounted paid value; fixed rates pay per
    paid unit. Free units never earn.
    """
    if not commission_type or not rate:
        return 0.0
    kind = CommissionType(commission_type)
    if kind == CommissionType.PERCENTAGE:
        return unit_price * quantity * rate / 100
    return rate * quantity


def actual_unit_cost(total_cost: float, quantity: float, free_quantity: float = 0.0) -> float:
    """Landed cost per unit when free goods come with a purchase."""
    units = quantity + free_quantity
    if units <= 0:
        return 0.0
    return total_cost / units


def price_order(
    lines: Sequence[LineInput],
    products: Mapping[int, Product],
    extra_discount: float = 0.0,
) -> PricedOrder:
    """Price every line of an order against the product master."""
    if not lines:
        raise ValidationError("items", "At least one item is required")

    totals = [line.total for line in lines]
    shares = allocate_extra_discount(totals, extra_discount)

    items: list[OrderItem] = []
    units_by_product: dict[int, float] = {}
    total_commission = 0.0

    for line, share in zip(lines, shares):
        if line.quantity + line.free_quantity <= 0:
            raise ValidationError("quantity", "Quantity must be greater than zero", line.quantity)
        product = products.get(line.product_id)
        if product is None:
            raise ValidationError("productId", f"Unknown product: {line.product_id}", line.product_id)

        commission = commission_for_line(
            product.commission_type,
            product.commission_value,
            line.unit_price,
            line.quantity,
        )
        total_commission += commission
        units_by_product[line.product_id] = units_by_product.get(line.product_id, 0.0) + line.units

        items.append(
            OrderItem(
                product_id=line.product_id,
                quantity=line.quantity,
                free_quantity=line.free_quantity,
                unit_price=line.unit_price,
                actual_unit_price=actual_unit_price(
                    line.total, share, line.quantity, line.free_quantity
                ),
                actual_unit_cost=product.unit_cost,
                discount_percent=line.discount_percent,
                discount_amount=line.discount_amount,
                total_price=line.total,
                commission_earned=round_money(commission),
            )
        )

    return PricedOrder(
        items=items,
        gross_subtotal=gross_subtotal(totals),
        extra_discount=extra_discount,
        total_commission=round_money(total_commission),
        units_by_product=units_by_product,
    )


def reduce_line_for_return(item: OrderItem, returned: float) -> OrderItem:
    """
    Take returned units off an order line.

    Paid units go first, then free units. The line total and commission shrink
    in proportion to the paid quantity that remains.
    """
    if returned <= 0:
        raise ValidationError("quantity", "Return quantity must be greater than zero", returned)
    if returned > item.units:
        raise ValidationError(
            "quantity",
            f"Cannot return {returned} units, line only has {item.units}",
            returned,
        )

    paid_returned = min(returned, item.quantity)
    free_returned = returned - paid_returned
    new_quantity = item.quantity - paid_returned
    ratio = new_quantity / item.quantity if item.quantity else 0.0

    return item.model_copy(
        update={
            "quantity": new_quantity,
            "free_quantity": item.free_quantity - free_returned,
            "total_price": round_money(item.total_price * ratio),
            "commission_earned": round_money(item.commission_earned * ratio),
        }
    )


def sum_items(items: Sequence[OrderItem]) -> tuple[float, float]:
    """Fresh (total, commission) over a set of order lines."""
    total = sum(item.total_price for item in items)
    commission = sum(item.commission_earned for item in items)
    return round_money(total), round_money(commission)
