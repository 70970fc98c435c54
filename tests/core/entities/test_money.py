"""Tests for money helpers."""

from decimal import Decimal

import pytest

from possync.core.entities import ZERO, money_sum, to_money


class TestToMoney:
    """Tests for to_money."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (25.5, Decimal("25.50")),
            (0.1, Decimal("0.10")),
            ("10", Decimal("10.00")),
            (7, Decimal("7.00")),
            (Decimal("2.005"), Decimal("2.01")),
            (None, ZERO),
        ],
    )
    def test_coercion(self, value, expected):
        assert to_money(value) == expected

    def test_two_places(self):
        assert to_money(1).as_tuple().exponent == -2


class TestMoneySum:
    """Tests for money_sum."""

    def test_float_drift_avoided(self):
        """Test 0.1 + 0.2 is exactly 0.30."""
        assert money_sum([0.1, 0.2]) == Decimal("0.30")

    def test_empty(self):
        assert money_sum([]) == ZERO

    def test_mixed_inputs(self):
        assert money_sum([Decimal("10.00"), 25.5, "4"]) == Decimal("39.50")
