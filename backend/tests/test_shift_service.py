# Overview: Pytest coverage for shift lifecycle operations and drawer movements.

from datetime import datetime

import pytest

from restopos.models import Shift, CashTransaction
from restopos.services import shift_service
from restopos.services.shift_service import ShiftError


class TestOpenShift:
    def test_open_shift(self, db_session):
        shift = shift_service.open_shift(restaurant_id=1, cashier_id=7, opening_cash_minor=50000, branch_id=3)

        assert shift.id is not None
        assert shift.status == "open"
        assert shift.opening_cash_minor == 50000
        assert shift.branch_id == 3
        assert shift.opened_at is not None
        assert shift.closed_at is None
        assert shift_service.get_open_shift(7).id == shift.id

    def test_one_open_shift_per_cashier(self, db_session):
        shift_service.open_shift(restaurant_id=1, cashier_id=7, opening_cash_minor=0)

        with pytest.raises(ShiftError, match="already has an open shift"):
            shift_service.open_shift(restaurant_id=1, cashier_id=7, opening_cash_minor=0)

        other = shift_service.open_shift(restaurant_id=1, cashier_id=8, opening_cash_minor=0)
        assert other.cashier_id == 8

    def test_negative_opening_cash(self, db_session):
        with pytest.raises(ShiftError):
            shift_service.open_shift(restaurant_id=1, cashier_id=7, opening_cash_minor=-1)

        assert db_session.query(Shift).count() == 0

    def test_cashier_can_reopen_after_close(self, db_session):
        first = shift_service.open_shift(restaurant_id=1, cashier_id=7, opening_cash_minor=0)
        shift_service.close_shift(first.id, 0)

        second = shift_service.open_shift(restaurant_id=1, cashier_id=7, opening_cash_minor=0)
        assert second.id != first.id


class TestCloseShift:
    def test_close_shift(self, make_shift):
        shift = make_shift(opening_cash=50000)

        closed = shift_service.close_shift(shift.id, 250000, notes="Short on change")

        assert closed.status == "closed"
        assert closed.closing_cash_minor == 250000
        assert closed.closed_at is not None
        assert closed.notes == "Short on change"

    def test_close_twice(self, make_shift):
        shift = make_shift()
        shift_service.close_shift(shift.id, 0)

        with pytest.raises(ShiftError, match="already closed"):
            shift_service.close_shift(shift.id, 100)

        assert shift_service.get_shift(shift.id).closing_cash_minor == 0

    def test_close_missing_shift(self, db_session):
        with pytest.raises(ShiftError, match="not found"):
            shift_service.close_shift(424242, 0)

    def test_negative_closing_cash(self, make_shift):
        shift = make_shift()

        with pytest.raises(ShiftError):
            shift_service.close_shift(shift.id, -5)

        assert not shift_service.get_shift(shift.id).is_closed


class TestCashTransactions:
    def test_cash_in_and_out(self, make_shift):
        shift = make_shift()

        shift_service.record_cash_transaction(shift.id, "cash_in", 10000, "Change top-up")
        shift_service.record_cash_transaction(shift.id, "cash_out", 5000)

        txns = shift_service.get_shift_cash_transactions(shift.id)
        assert [(t.transaction_type, t.amount_minor, t.reason) for t in txns] == [
            ("cash_in", 10000, "Change top-up"),
            ("cash_out", 5000, None),
        ]

    @pytest.mark.parametrize("transaction_type", ["payout", "CASH_IN", "", None])
    def test_invalid_type(self, make_shift, transaction_type):
        shift = make_shift()

        with pytest.raises(ShiftError, match="Invalid cash transaction type"):
            shift_service.record_cash_transaction(shift.id, transaction_type, 1000)

    @pytest.mark.parametrize("amount", [0, -1, None])
    def test_amount_must_be_positive(self, make_shift, amount):
        shift = make_shift()

        with pytest.raises(ShiftError, match="must be positive"):
            shift_service.record_cash_transaction(shift.id, "cash_in", amount)

    def test_closed_shift_rejects_movements(self, make_shift, db_session):
        shift = make_shift(closing_cash=0)

        with pytest.raises(ShiftError, match="Shift not open"):
            shift_service.record_cash_transaction(shift.id, "cash_in", 1000)

        assert db_session.query(CashTransaction).count() == 0

    def test_missing_shift(self, db_session):
        with pytest.raises(ShiftError, match="Shift not open"):
            shift_service.record_cash_transaction(424242, "cash_out", 1000)


class TestListShifts:
    @pytest.fixture
    def three_shifts(self, make_shift):
        early = make_shift(cashier_id=1, opened_at=datetime(2026, 10, 18, 8, 0), closing_cash=0)
        late = make_shift(cashier_id=2, opened_at=datetime(2026, 10, 19, 14, 0))
        make_shift(cashier_id=3, restaurant_id=2)
        return early, late

    def test_newest_first(self, three_shifts):
        early, late = three_shifts

        shifts = shift_service.list_shifts(1)

        assert [s.id for s in shifts] == [late.id, early.id]

    def test_status_filter(self, three_shifts):
        early, late = three_shifts

        assert [s.id for s in shift_service.list_shifts(1, status="open")] == [late.id]
        assert [s.id for s in shift_service.list_shifts(1, status="closed")] == [early.id]

    def test_limit(self, three_shifts):
        assert len(shift_service.list_shifts(1, limit=1)) == 1

    def test_invalid_status(self, db_session):
        with pytest.raises(ShiftError):
            shift_service.list_shifts(1, status="pending")
