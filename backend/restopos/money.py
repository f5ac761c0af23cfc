# Overview: Fixed-point money helpers; all amounts are integers in minor units.

"""
Money Helpers

WHY: Proportional refund allocation in floating point drifts across many
small refunds and stops reconciling to the fils. Every amount in the system
is an integer count of minor units; conversion from and to decimal text
happens only at the edges (request parsing, report rendering).

ROUNDING: HALF-UP, symmetric around zero (the JOD convention).
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP


def _quantum(decimals: int) -> Decimal:
    return Decimal(1).scaleb(-decimals)


def to_minor(value, decimals: int) -> int:
    """
    Convert a major-unit amount to minor units.

    Accepts int, Decimal or a decimal string ("12.5", "-3.250").
    Floats are rejected: they have already lost the exact value.

    Raises:
        ValueError: If value is not a finite decimal amount
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"Amount must be a decimal string or integer, got {type(value).__name__}")

    if isinstance(value, int):
        return value * (10 ** decimals)

    if isinstance(value, str):
        try:
            value = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"Invalid amount: {value!r}")

    if not isinstance(value, Decimal):
        raise ValueError(f"Invalid amount type: {type(value).__name__}")

    if not value.is_finite():
        raise ValueError("Amount must be finite")

    return int(value.scaleb(decimals).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_minor(minor: int, decimals: int) -> Decimal:
    """Minor units -> exact Decimal in major units."""
    return Decimal(minor).scaleb(-decimals).quantize(_quantum(decimals))


def format_minor(minor: int | None, decimals: int) -> str | None:
    """Render minor units with exactly `decimals` places, e.g. 12500 -> "12.500"."""
    if minor is None:
        return None
    return f"{from_minor(minor, decimals):.{decimals}f}"


def div_round_half_up(numerator: int, denominator: int) -> int:
    """
    Integer division rounded half-up (away from zero on ties).

    div_round_half_up(5, 2) == 3, div_round_half_up(-5, 2) == -3
    """
    if denominator == 0:
        raise ZeroDivisionError("denominator must be non-zero")
    if denominator < 0:
        numerator, denominator = -numerator, -denominator
    sign = -1 if numerator < 0 else 1
    quotient, remainder = divmod(abs(numerator), denominator)
    if remainder * 2 >= denominator:
        quotient += 1
    return sign * quotient
