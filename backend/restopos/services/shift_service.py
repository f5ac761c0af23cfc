"""
Shift Lifecycle Service

WHY: A shift is the period of cash accountability for one cashier. The
Z-report reads what is recorded here: opening cash, drawer movements and
the counted closing cash.

DESIGN PRINCIPLES:
- One open shift per cashier at a time
- Shifts are immutable once closed
- Drawer movements only on open shifts
- No expected cash is stored; it is always recomputed from the ledger
"""

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import Shift, CashTransaction
from ..models.shifts import CASH_IN, CASH_OUT
from restopos.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry


class ShiftError(Exception):
    """Raised for shift management errors."""
    pass


VALID_CASH_TRANSACTION_TYPES = [CASH_IN, CASH_OUT]


# =============================================================================
# SHIFT LIFECYCLE
# =============================================================================

def open_shift(
    restaurant_id: int,
    cashier_id: int,
    opening_cash_minor: int,
    branch_id: int | None = None,
) -> Shift:
    """
    Open a new shift for a cashier.

    Args:
        restaurant_id: Restaurant the till belongs to
        cashier_id: Cashier taking the till
        opening_cash_minor: Float counted into the drawer (minor units)
        branch_id: Branch, for multi-branch restaurants

    Raises:
        ShiftError: If the cashier already has an open shift or cash is negative
    """
    if opening_cash_minor is None or opening_cash_minor < 0:
        raise ShiftError("Opening cash must be zero or positive")

    existing_open = get_open_shift(cashier_id)
    if existing_open:
        raise ShiftError(f"Cashier already has an open shift (shift {existing_open.id})")

    shift = Shift(
        restaurant_id=restaurant_id,
        branch_id=branch_id,
        cashier_id=cashier_id,
        opening_cash_minor=opening_cash_minor,
        opened_at=utcnow(),
    )

    db.session.add(shift)
    db.session.commit()

    current_app.logger.info("Shift %s opened by cashier %s", shift.id, cashier_id)
    return shift


def close_shift(shift_id: int, closing_cash_minor: int, notes: str | None = None) -> Shift:
    """
    Close a shift with the physically counted drawer cash.

    IMMUTABLE: Once closed, the shift cannot be reopened or modified.
    The variance is reported by the Z-report, not stored here.
    """
    if closing_cash_minor is None or closing_cash_minor < 0:
        raise ShiftError("Closing cash must be zero or positive")

    def _op():
        shift = lock_for_update(db.session.query(Shift).filter_by(id=shift_id)).first()

        if not shift:
            raise ShiftError("Shift not found")

        if shift.is_closed:
            raise ShiftError("Shift already closed")

        shift.closing_cash_minor = closing_cash_minor
        shift.closed_at = utcnow()
        shift.notes = notes

        db.session.commit()
        return shift

    shift = run_with_retry(_op)
    current_app.logger.info("Shift %s closed", shift.id)
    return shift


# =============================================================================
# CASH DRAWER MOVEMENTS
# =============================================================================

def record_cash_transaction(
    shift_id: int,
    transaction_type: str,
    amount_minor: int,
    reason: str | None = None,
) -> CashTransaction:
    """
    Record cash put into (cash_in) or taken out of (cash_out) the drawer.

    Raises:
        ShiftError: If type is invalid, amount not positive, or shift not open
    """
    if transaction_type not in VALID_CASH_TRANSACTION_TYPES:
        raise ShiftError(
            f"Invalid cash transaction type: {transaction_type}. Must be one of {VALID_CASH_TRANSACTION_TYPES}"
        )

    if amount_minor is None or amount_minor <= 0:
        raise ShiftError("Cash transaction amount must be positive")

    def _op():
        shift = lock_for_update(db.session.query(Shift).filter_by(id=shift_id)).first()

        if not shift or shift.is_closed:
            raise ShiftError("Shift not open")

        txn = CashTransaction(
            shift_id=shift_id,
            transaction_type=transaction_type,
            amount_minor=amount_minor,
            reason=reason,
            created_at=utcnow(),
        )
        db.session.add(txn)
        db.session.commit()
        return txn

    return run_with_retry(_op)


# =============================================================================
# QUERIES
# =============================================================================

def get_shift(shift_id: int) -> Shift | None:
    return db.session.get(Shift, shift_id)


def get_open_shift(cashier_id: int) -> Shift | None:
    """Get the currently open shift for a cashier, if any."""
    return db.session.query(Shift).filter(
        Shift.cashier_id == cashier_id,
        Shift.closed_at.is_(None),
    ).first()


def list_shifts(restaurant_id: int, status: str | None = None, limit: int = 50) -> list[Shift]:
    """Most recent shifts first. status: "open", "closed" or None for both."""
    query = db.session.query(Shift).filter(Shift.restaurant_id == restaurant_id)

    if status == "open":
        query = query.filter(Shift.closed_at.is_(None))
    elif status == "closed":
        query = query.filter(Shift.closed_at.isnot(None))
    elif status is not None:
        raise ShiftError("status must be open or closed")

    return query.order_by(Shift.opened_at.desc(), Shift.id.desc()).limit(limit).all()


def get_shift_cash_transactions(shift_id: int) -> list[CashTransaction]:
    return db.session.query(CashTransaction).filter_by(
        shift_id=shift_id
    ).order_by(CashTransaction.id).all()
