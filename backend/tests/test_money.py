# Overview: Pytest coverage for fixed-point money helpers.

from decimal import Decimal

import pytest

from restopos.money import to_minor, from_minor, format_minor, div_round_half_up


class TestToMinor:
    def test_decimal_strings(self):
        assert to_minor("12.5", 3) == 12500
        assert to_minor("0.001", 3) == 1
        assert to_minor(" -3.250 ", 3) == -3250

    def test_integers_are_major_units(self):
        assert to_minor(12, 3) == 12000
        assert to_minor(7, 2) == 700

    def test_decimal_input(self):
        assert to_minor(Decimal("1.2345"), 2) == 123

    def test_half_up_rounding(self):
        assert to_minor("0.0005", 3) == 1
        assert to_minor("0.0004", 3) == 0
        assert to_minor("-0.0005", 3) == -1

    @pytest.mark.parametrize("bad", [1.5, True, "abc", "NaN", "Infinity", None, [1]])
    def test_rejects_non_decimal_input(self, bad):
        with pytest.raises(ValueError):
            to_minor(bad, 3)


class TestFormatting:
    def test_from_minor_is_exact(self):
        assert from_minor(12345, 3) == Decimal("12.345")

    def test_format_minor(self):
        assert format_minor(255000, 3) == "255.000"
        assert format_minor(-5000, 3) == "-5.000"
        assert format_minor(7, 3) == "0.007"
        assert format_minor(1999, 2) == "19.99"

    def test_format_none(self):
        assert format_minor(None, 3) is None


class TestDivRoundHalfUp:
    @pytest.mark.parametrize("numerator,denominator,expected", [
        (10, 5, 2),
        (5, 2, 3),
        (7, 3, 2),
        (8, 3, 3),
        (-5, 2, -3),
        (-7, 3, -2),
        (5, -2, -3),
        (0, 9, 0),
    ])
    def test_rounding(self, numerator, denominator, expected):
        assert div_round_half_up(numerator, denominator) == expected

    def test_zero_denominator(self):
        with pytest.raises(ZeroDivisionError):
            div_round_half_up(1, 0)
