"""
Rounding, zero-denominator policy and fixed-rate currency conversion.
"""
from decimal import Decimal, ROUND_DOWN

from app.services.analytics.currency import convert_exact, to_target_currency
from app.services.analytics.metrics import pct_change, percent, round_half_up, safe_ratio


class TestRoundHalfUp:

    def test_half_rounds_away_from_zero(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -3
        assert round_half_up(Decimal("0.125"), 2) == 0.13

    def test_integer_result_for_zero_places(self):
        result = round_half_up(Decimal("1499.5"))
        assert result == 1500
        assert isinstance(result, int)

    def test_float_result_for_places(self):
        result = round_half_up(Decimal("8.3333"), 2)
        assert result == 8.33
        assert isinstance(result, float)


class TestZeroDenominator:

    def test_safe_ratio(self):
        assert safe_ratio(5, 0) == 0
        assert safe_ratio(10, 4) == Decimal("2.5")

    def test_percent(self):
        assert percent(1, 0) == 0
        assert round_half_up(percent(25, 300), 2) == 8.33

    def test_pct_change(self):
        assert round_half_up(pct_change(50, 300), 1) == -83.3
        assert pct_change(5, 0) == 0
        assert pct_change(0, 0) == 0


class TestCurrency:

    def test_rounds_to_whole_krw(self):
        assert to_target_currency(Decimal("10.005"), 1500) == 15008
        assert to_target_currency(Decimal("0.3333"), 1500) == 500

    def test_float_amount_uses_its_decimal_repr(self):
        assert to_target_currency(0.1, 1500) == 150

    def test_parameterized_places_and_rounding(self):
        assert to_target_currency(1, Decimal("1.2345"), places=2) == 1.23
        assert to_target_currency(Decimal("1.999"), 1, rounding=ROUND_DOWN) == 1

    def test_exact_conversion_is_unrounded(self):
        assert convert_exact(Decimal("0.3333"), 1500) == Decimal("499.95")
        assert convert_exact(Decimal("0.01"), 1500) == Decimal("15")
