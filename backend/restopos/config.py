# backend/restopos/config.py
from __future__ import annotations
import os


def _csv(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///restopos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Minor units per major unit, as a power of ten (JOD has 1000 fils -> 3)
    CURRENCY_DECIMALS = int(os.environ.get("CURRENCY_DECIMALS", "3"))

    # Payment method allow-list used by the Z-report. Anything not listed here
    # is excluded from the cash/card/mobile breakdowns.
    PAYMENT_METHOD_CASH = os.environ.get("PAYMENT_METHOD_CASH", "cash")
    PAYMENT_METHOD_CARD = os.environ.get("PAYMENT_METHOD_CARD", "visa")
    PAYMENT_METHODS_MOBILE = _csv(
        os.environ.get("PAYMENT_METHODS_MOBILE", "cliq,zain_cash,orange_money,umniah_wallet")
    )

    # Browser origins allowed to call the API (till frontend dev servers)
    CORS_ORIGINS = _csv(
        os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        )
    )


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = "test"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
