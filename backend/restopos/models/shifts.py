from __future__ import annotations

from ..extensions import db
from restopos.time_utils import to_utc_z


SHIFT_STATUS_OPEN = "open"
SHIFT_STATUS_CLOSED = "closed"

CASH_IN = "cash_in"
CASH_OUT = "cash_out"


class Shift(db.Model):
    """
    Cashier till session.

    WHY: Cashier accountability. Each shift has opening/closing cash counts
    and owns every order and drawer movement taken during it.

    LIFECYCLE:
    - open: closed_at is NULL, orders and cash movements may be recorded
    - closed: closed_at set, closing cash counted

    Status is derived from closed_at; there is no separate status column.
    IMMUTABLE: Once closed, a shift is never reopened or modified.
    """
    __tablename__ = "shifts"
    __table_args__ = (
        db.Index("ix_shifts_restaurant_closed", "restaurant_id", "closed_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    restaurant_id = db.Column(db.Integer, nullable=False, index=True)
    branch_id = db.Column(db.Integer, nullable=True, index=True)
    cashier_id = db.Column(db.Integer, nullable=False, index=True)

    # Cash tracking (all amounts in minor units)
    opening_cash_minor = db.Column(db.Integer, nullable=False, default=0)
    closing_cash_minor = db.Column(db.Integer, nullable=True)  # Set when closing

    opened_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)
    closed_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)

    notes = db.Column(db.Text, nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def status(self) -> str:
        return SHIFT_STATUS_CLOSED if self.closed_at is not None else SHIFT_STATUS_OPEN

    @property
    def is_closed(self) -> bool:
        return self.closed_at is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "restaurant_id": self.restaurant_id,
            "branch_id": self.branch_id,
            "cashier_id": self.cashier_id,
            "status": self.status,
            "opening_cash_minor": self.opening_cash_minor,
            "closing_cash_minor": self.closing_cash_minor,
            "opened_at": to_utc_z(self.opened_at),
            "closed_at": to_utc_z(self.closed_at) if self.closed_at else None,
            "notes": self.notes,
            "version_id": self.version_id,
        }


class CashTransaction(db.Model):
    """
    Manual drawer adjustment unrelated to sales.

    TYPES:
    - cash_in: float added to the drawer (e.g. extra change)
    - cash_out: cash removed (e.g. petty expense, drop to safe)
    """
    __tablename__ = "shift_transactions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    shift_id = db.Column(db.Integer, db.ForeignKey("shifts.id"), nullable=False, index=True)

    transaction_type = db.Column(db.String(16), nullable=False)
    amount_minor = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    shift = db.relationship("Shift", backref=db.backref("cash_transactions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shift_id": self.shift_id,
            "transaction_type": self.transaction_type,
            "amount_minor": self.amount_minor,
            "reason": self.reason,
            "created_at": to_utc_z(self.created_at),
        }
