"""Tests for order pricing, line validation and order numbers."""

import re
from datetime import datetime, timezone

import pytest
from protean.exceptions import ValidationError

from storefront.orders.numbers import format_order_number, generate_order_number
from storefront.orders.pricing import MAX_LINE_QUANTITY, calculate_order_total, validate_order_items
from storefront.shared.money import money_equal, round_money


def _line(product_id="prod-1", quantity=1, price=10.0, **extra):
    return {"product_id": product_id, "quantity": quantity, "price": price, **extra}


class TestCalculateOrderTotal:
    def test_breakdown(self):
        subtotal, tax, total = calculate_order_total([_line(quantity=2), _line("prod-2", price=5.0)], 0.1, 4.0, 3.0)
        assert (subtotal, tax, total) == (25.0, 2.5, 28.5)

    def test_rate_above_one_is_a_percentage(self):
        assert calculate_order_total([_line(price=100.0)], tax_rate=8)[1] == 8.0

    def test_negative_inputs_count_as_zero(self):
        assert calculate_order_total([_line()], tax_rate=-0.1, shipping_cost=-5, discount_amount=-2) == (
            10.0,
            0.0,
            10.0,
        )

    def test_discount_floors_total_at_zero(self):
        assert calculate_order_total([_line()], discount_amount=50.0)[2] == 0.0

    def test_line_subtotal_wins_when_given(self):
        assert calculate_order_total([_line(quantity=3, price=1.0, subtotal=3.0)])[0] == 3.0


class TestValidateOrderItems:
    def test_valid(self):
        validate_order_items([_line(), _line("prod-2")])

    @pytest.mark.parametrize(
        "items",
        [
            [],
            [_line(quantity=0)],
            [_line(quantity=MAX_LINE_QUANTITY + 1)],
            [_line(price=0)],
            [_line(price=1_000_000)],
            [_line(product_id="")],
            [_line(), _line()],
            [_line(quantity=2, price=10.0, subtotal=15.0)],
        ],
    )
    def test_invalid(self, items):
        with pytest.raises(ValidationError):
            validate_order_items(items)

    def test_order_quantity_cap(self):
        items = [_line(f"prod-{i}", quantity=100) for i in range(11)]
        with pytest.raises(ValidationError):
            validate_order_items(items)


class TestMoney:
    @pytest.mark.parametrize("amount, rounded", [(0.125, 0.13), (12.344, 12.34), (-0.125, -0.13), (None, 0.0)])
    def test_round_half_away_from_zero(self, amount, rounded):
        assert round_money(amount) == rounded

    def test_money_equal_within_a_cent(self):
        assert money_equal(10.0, 10.004)
        assert not money_equal(10.0, 10.02)


class TestOrderNumbers:
    def test_format(self):
        now = datetime(2026, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
        assert format_order_number(now, 4321) == "ORD-20260304-050607-4321"

    def test_generated_numbers_match_pattern(self):
        assert re.fullmatch(r"ORD-\d{8}-\d{6}-\d{4}", generate_order_number())
