from __future__ import annotations

from datetime import date
from typing import Any

from flask import current_app

from restopos.money import to_minor
from restopos.time_utils import parse_iso_date


# Maximum amount accepted from clients: 999,999,999 minor units per field.
# Prevents overflow of 32-bit integer columns and nonsensical till counts.
MAX_AMOUNT_MINOR = 999_999_999


class ValidationError(ValueError):
    """400-level input problem."""


def parse_amount(data: dict, key: str, *, required: bool = True, allow_zero: bool = True) -> int | None:
    """
    Read a major-unit amount from a JSON body and return it in minor units.

    Accepts decimal strings ("12.500") or integers. Floats are rejected so
    that no client ever sends an already-rounded binary value.
    """
    raw: Any = data.get(key)
    if raw is None or raw == "":
        if required:
            raise ValidationError(f"{key} is required")
        return None

    try:
        minor = to_minor(raw, current_app.config["CURRENCY_DECIMALS"])
    except ValueError as exc:
        raise ValidationError(f"{key}: {exc}")

    if minor < 0 or (minor == 0 and not allow_zero):
        raise ValidationError(f"{key} must be {'non-negative' if allow_zero else 'positive'}")
    if minor > MAX_AMOUNT_MINOR:
        raise ValidationError(f"{key} exceeds maximum allowed amount")
    return minor


def parse_int(value: Any, key: str, *, required: bool = True) -> int | None:
    if value is None or value == "":
        if required:
            raise ValidationError(f"{key} is required")
        return None
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    raise ValidationError(f"{key} must be an integer")


def parse_day(value: str | None, key: str = "date") -> date | None:
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{key} must be an ISO date (YYYY-MM-DD)")
