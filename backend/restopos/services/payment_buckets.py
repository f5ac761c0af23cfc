# Overview: Maps raw payment method identifiers to cash/card/mobile reporting buckets.

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping


# =============================================================================
# BUCKETS (CONSTANTS)
# =============================================================================

BUCKET_CASH = "cash"
BUCKET_CARD = "card"
BUCKET_MOBILE = "mobile"

BUCKETS = (BUCKET_CASH, BUCKET_CARD, BUCKET_MOBILE)


@dataclass(frozen=True)
class PaymentBucketer:
    """
    Explicit allow-list of payment methods per reporting bucket.

    Methods are matched exactly. Anything not listed maps to None and is
    left out of every bucketed total (the order itself still counts in
    gross sales).
    """
    cash_method: str = "cash"
    card_method: str = "visa"
    mobile_methods: frozenset[str] = frozenset({"cliq", "zain_cash", "orange_money", "umniah_wallet"})

    @classmethod
    def from_config(cls, config: Mapping) -> "PaymentBucketer":
        """Missing keys keep the defaults; an empty mobile list disables the mobile bucket."""
        mobile = config.get("PAYMENT_METHODS_MOBILE")
        return cls(
            cash_method=config.get("PAYMENT_METHOD_CASH", cls.cash_method),
            card_method=config.get("PAYMENT_METHOD_CARD", cls.card_method),
            mobile_methods=frozenset(cls.mobile_methods if mobile is None else mobile),
        )

    def bucket(self, method: str | None) -> str | None:
        if method is None:
            return None
        if method == self.cash_method:
            return BUCKET_CASH
        if method == self.card_method:
            return BUCKET_CARD
        if method in self.mobile_methods:
            return BUCKET_MOBILE
        return None


DEFAULT_BUCKETER = PaymentBucketer()


def bucket(method: str | None) -> str | None:
    """Bucket a method using the default allow-list."""
    return DEFAULT_BUCKETER.bucket(method)
