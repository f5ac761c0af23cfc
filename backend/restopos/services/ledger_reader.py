# Overview: Loads one shift's orders, payments, refunds and drawer movements as immutable records.

"""
Shift Ledger Reader

WHY: The Z-report is a pure computation. This module is the only place it
touches the database: it reads everything scoped to one shift and hands
back frozen records detached from the ORM session.

SNAPSHOT: All reads run inside the current session transaction, and refunds
are selected by the order ids read in that same transaction. A refund is
therefore never seen without its parent order.

FAILURES: Any database error aborts the read (LedgerReadError). There is no
partial ledger.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import Shift, Order, Refund, CashTransaction


class ShiftNotFound(LookupError):
    """Raised when the requested shift does not exist."""
    pass


class LedgerReadError(Exception):
    """Raised when any part of a shift ledger cannot be fetched."""
    pass


# =============================================================================
# RECORDS (all amounts in minor units)
# =============================================================================

@dataclass(frozen=True)
class ShiftRecord:
    id: int
    opened_at: datetime | None
    closed_at: datetime | None
    opening_cash: int
    closing_cash: int | None
    cashier_id: int | None = None

    @property
    def is_closed(self) -> bool:
        return self.closed_at is not None


@dataclass(frozen=True)
class PaymentRecord:
    id: int
    method: str
    amount: int


@dataclass(frozen=True)
class OrderRecord:
    id: int
    status: str
    subtotal: int
    tax_amount: int
    service_charge: int
    total: int
    discount_type: str | None = None
    discount_value: int = 0
    payments: tuple[PaymentRecord, ...] = ()


@dataclass(frozen=True)
class RefundRecord:
    id: int
    order_id: int
    amount: int
    reason: str | None = None


@dataclass(frozen=True)
class CashTransactionRecord:
    id: int
    transaction_type: str
    amount: int


@dataclass(frozen=True)
class ShiftLedger:
    shift: ShiftRecord
    orders: tuple[OrderRecord, ...] = ()
    refunds: tuple[RefundRecord, ...] = ()
    cash_transactions: tuple[CashTransactionRecord, ...] = ()


# =============================================================================
# READER
# =============================================================================

def _shift_record(shift: Shift) -> ShiftRecord:
    return ShiftRecord(
        id=shift.id,
        opened_at=shift.opened_at,
        closed_at=shift.closed_at,
        opening_cash=shift.opening_cash_minor or 0,
        closing_cash=shift.closing_cash_minor,
        cashier_id=shift.cashier_id,
    )


def _order_record(order: Order) -> OrderRecord:
    return OrderRecord(
        id=order.id,
        status=order.status,
        subtotal=order.subtotal_minor or 0,
        tax_amount=order.tax_amount_minor or 0,
        service_charge=order.service_charge_minor or 0,
        total=order.total_minor or 0,
        discount_type=order.discount_type,
        discount_value=order.discount_value or 0,
        payments=tuple(
            PaymentRecord(id=p.id, method=p.method, amount=p.amount_minor or 0)
            for p in order.payments
        ),
    )


def read_shift_ledger(shift_id: int) -> ShiftLedger:
    """
    Load the full ledger for one shift.

    Raises:
        ShiftNotFound: If no shift has this id
        LedgerReadError: If any of the reads fails
    """
    try:
        shift = db.session.get(Shift, shift_id)
        if shift is None:
            raise ShiftNotFound(f"Shift {shift_id} not found")

        orders = db.session.query(Order).options(
            selectinload(Order.payments)
        ).filter_by(shift_id=shift_id).order_by(Order.id).all()

        order_ids = [o.id for o in orders]
        refunds = []
        if order_ids:
            refunds = db.session.query(Refund).filter(
                Refund.order_id.in_(order_ids)
            ).order_by(Refund.id).all()

        cash_transactions = db.session.query(CashTransaction).filter_by(
            shift_id=shift_id
        ).order_by(CashTransaction.id).all()

        return ShiftLedger(
            shift=_shift_record(shift),
            orders=tuple(_order_record(o) for o in orders),
            refunds=tuple(
                RefundRecord(id=r.id, order_id=r.order_id, amount=r.amount_minor or 0, reason=r.reason)
                for r in refunds
            ),
            cash_transactions=tuple(
                CashTransactionRecord(id=t.id, transaction_type=t.transaction_type, amount=t.amount_minor or 0)
                for t in cash_transactions
            ),
        )
    except SQLAlchemyError as exc:
        raise LedgerReadError(f"Failed to load ledger for shift {shift_id}") from exc
