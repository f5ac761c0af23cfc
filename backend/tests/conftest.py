"""
Pytest fixtures for RestoPOS backend tests.

Provides an in-memory application, a clean database per test, and
factories for shifts, orders (with payments), refunds and drawer movements.
All amounts handed to the factories are minor units (fils).
"""

from datetime import datetime

import pytest

from restopos import create_app
from restopos.config import TestingConfig
from restopos.extensions import db
from restopos.models import Shift, Order, Payment, Refund, CashTransaction


OPENED_AT = datetime(2026, 10, 19, 8, 0, 0)
CLOSED_AT = datetime(2026, 10, 19, 16, 30, 0)


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestingConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def cli_runner(app):
    return app.test_cli_runner()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        db.session.expunge_all()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def make_shift(db_session):
    """Factory: make_shift(opening_cash=..., closing_cash=...) -> Shift."""
    def _make(
        opening_cash: int = 0,
        closing_cash: int | None = None,
        *,
        restaurant_id: int = 1,
        branch_id: int | None = None,
        cashier_id: int = 1,
        opened_at: datetime = OPENED_AT,
        closed_at: datetime | None = None,
    ) -> Shift:
        if closing_cash is not None and closed_at is None:
            closed_at = CLOSED_AT
        shift = Shift(
            restaurant_id=restaurant_id,
            branch_id=branch_id,
            cashier_id=cashier_id,
            opening_cash_minor=opening_cash,
            closing_cash_minor=closing_cash,
            opened_at=opened_at,
            closed_at=closed_at,
        )
        db_session.add(shift)
        db_session.commit()
        return shift

    return _make


@pytest.fixture(scope='function')
def make_order(db_session):
    """
    Factory: make_order(shift, total, payments=[("cash", amount), ...]) -> Order.

    subtotal defaults to total - tax - service.
    """
    def _make(
        shift: Shift,
        total: int,
        *,
        status: str = "paid",
        subtotal: int | None = None,
        tax: int = 0,
        service: int = 0,
        discount_type: str | None = None,
        discount_value: int = 0,
        payments=(),
    ) -> Order:
        order = Order(
            shift_id=shift.id,
            restaurant_id=shift.restaurant_id,
            status=status,
            subtotal_minor=subtotal if subtotal is not None else total - tax - service,
            tax_amount_minor=tax,
            service_charge_minor=service,
            total_minor=total,
            discount_type=discount_type,
            discount_value=discount_value,
        )
        db_session.add(order)
        db_session.flush()

        for method, amount in payments:
            db_session.add(Payment(order_id=order.id, method=method, amount_minor=amount))

        db_session.commit()
        return order

    return _make


@pytest.fixture(scope='function')
def make_refund(db_session):
    def _make(order: Order, amount: int, reason: str = "Customer complaint") -> Refund:
        refund = Refund(
            order_id=order.id,
            amount_minor=amount,
            reason=reason,
            refund_type="full" if amount >= order.total_minor else "partial",
        )
        db_session.add(refund)
        db_session.commit()
        return refund

    return _make


@pytest.fixture(scope='function')
def make_cash_transaction(db_session):
    def _make(shift: Shift, transaction_type: str, amount: int) -> CashTransaction:
        txn = CashTransaction(shift_id=shift.id, transaction_type=transaction_type, amount_minor=amount)
        db_session.add(txn)
        db_session.commit()
        return txn

    return _make
