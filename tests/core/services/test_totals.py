"""Tests for order pricing and commission."""

import pytest

from tradeledger.core.entities import CommissionType, OrderItem, Product
from tradeledger.core.exceptions import ValidationError
from tradeledger.core.services.totals import (
    LineInput,
    actual_unit_cost,
    actual_unit_price,
    allocate_extra_discount,
    commission_for_line,
    price_order,
    reduce_line_for_return,
    resolve_extra_discount,
    round_money,
    sum_items,
)


@pytest.fixture
def products() -> dict[int, Product]:
    return {
        1: Product(
            id=1,
            name="LED Bulb 9W",
            cost_price=40,
            commission_type=CommissionType.PERCENTAGE,
            commission_value=5,
        ),
        2: Product(
            id=2,
            name="Switch",
            cost_price=20,
            actual_cost_price=18,
            commission_type=CommissionType.FIXED,
            commission_value=2,
        ),
    }


class TestHelpers:
    def test_round_money_folds_negative_zero(self):
        assert str(round_money(-0.001)) == "0.0"

    def test_explicit_discount_amount_wins(self):
        assert resolve_extra_discount(1000, amount=50, percent=10) == 50

    def test_discount_percent(self):
        assert resolve_extra_discount(1000, percent=10) == 100

    def test_no_discount(self):
        assert resolve_extra_discount(1000) == 0

    def test_allocation_is_proportional(self):
        assert allocate_extra_discount([600, 400], 100) == [60, 40]

    def test_allocation_with_zero_gross(self):
        assert allocate_extra_discount([0, 0], 100) == [0.0, 0.0]

    def test_actual_unit_price_spreads_over_free_units(self):
        assert actual_unit_price(1000, 100, quantity=9, free_quantity=1) == 90

    def test_actual_unit_cost(self):
        assert actual_unit_cost(1000, 8, 2) == 100
        assert actual_unit_cost(1000, 0, 0) == 0


class TestCommission:
    def test_percentage(self):
        assert commission_for_line("percentage", 5, unit_price=100, quantity=10) == 50

    def test_fixed_per_paid_unit(self):
        assert commission_for_line(CommissionType.FIXED, 2, unit_price=100, quantity=10) == 20

    def test_no_commission_type(self):
        assert commission_for_line(None, 5, unit_price=100, quantity=10) == 0


class TestPriceOrder:
    def test_prices_lines(self, products):
        priced = price_order(
            [
                LineInput(product_id=1, quantity=10, free_quantity=2, unit_price=100, total=1000),
                LineInput(product_id=2, quantity=5, unit_price=40, total=200),
            ],
            products,
            extra_discount=120,
        )

        bulb, switch = priced.items
        assert priced.gross_subtotal == 1200
        assert priced.net_total == 1080
        # 100 of the 120 discount lands on the bulb line
        assert bulb.actual_unit_price == pytest.approx(900 / 12)
        assert bulb.actual_unit_cost == 40
        assert bulb.commission_earned == 50
        assert switch.actual_unit_cost == 18
        assert switch.commission_earned == 10
        assert priced.total_commission == 60
        assert priced.units_by_product == {1: 12, 2: 5}

    def test_line_totals_are_kept(self, products):
        priced = price_order(
            [LineInput(product_id=1, quantity=3, unit_price=100, total=250)], products
        )
        assert priced.items[0].total_price == 250

    def test_empty_order(self, products):
        with pytest.raises(ValidationError):
            price_order([], products)

    def test_unknown_product(self, products):
        with pytest.raises(ValidationError):
            price_order([LineInput(product_id=9, quantity=1, total=10)], products)

    def test_zero_quantity(self, products):
        with pytest.raises(ValidationError):
            price_order([LineInput(product_id=1, quantity=0, total=0)], products)


class TestReduceLineForReturn:
    @pytest.fixture
    def line(self) -> OrderItem:
        return OrderItem(
            id=1,
            product_id=1,
            quantity=10,
            free_quantity=2,
            unit_price=100,
            total_price=1000,
            commission_earned=50,
        )

    def test_paid_units_go_first(self, line):
        reduced = reduce_line_for_return(line, 4)
        assert reduced.quantity == 6
        assert reduced.free_quantity == 2
        assert reduced.total_price == 600
        assert reduced.commission_earned == 30

    def test_then_free_units(self, line):
        reduced = reduce_line_for_return(line, 11)
        assert reduced.quantity == 0
        assert reduced.free_quantity == 1
        assert reduced.total_price == 0

    def test_cannot_return_more_than_line(self, line):
        with pytest.raises(ValidationError):
            reduce_line_for_return(line, 13)

    def test_sum_items(self, line):
        other = OrderItem(product_id=2, quantity=1, total_price=99.995, commission_earned=1)
        assert sum_items([line, other]) == (round_money(1099.995), 51)
