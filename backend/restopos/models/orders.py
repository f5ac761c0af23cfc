from __future__ import annotations

from ..extensions import db
from restopos.time_utils import to_utc_z


ORDER_STATUS_OPEN = "open"
ORDER_STATUS_HELD = "held"
ORDER_STATUS_PAID = "paid"
ORDER_STATUS_REFUNDED = "refunded"
ORDER_STATUS_CANCELLED = "cancelled"
ORDER_STATUS_VOIDED = "voided"

DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_FIXED = "fixed"


class Order(db.Model):
    """
    Restaurant order (ticket) taken during a shift.

    Amounts are minor units. discount_value depends on discount_type:
    basis points for "percentage" (1000 = 10%), minor units for "fixed".
    Writers must convert a plain percent: 10 stored here reads as 0.1%.
    subtotal/tax/service/total are stored as computed at placement time;
    the total already has the discount applied.
    """
    __tablename__ = "orders"
    __table_args__ = (
        db.Index("ix_orders_shift_status", "shift_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shift_id = db.Column(db.Integer, db.ForeignKey("shifts.id"), nullable=False, index=True)
    restaurant_id = db.Column(db.Integer, nullable=False, index=True)
    order_number = db.Column(db.Integer, nullable=True)

    status = db.Column(db.String(16), nullable=False, default=ORDER_STATUS_OPEN, index=True)

    subtotal_minor = db.Column(db.Integer, nullable=False, default=0)
    discount_type = db.Column(db.String(16), nullable=True)  # percentage, fixed, NULL
    discount_value = db.Column(db.Integer, nullable=False, default=0)
    tax_amount_minor = db.Column(db.Integer, nullable=False, default=0)
    service_charge_minor = db.Column(db.Integer, nullable=False, default=0)
    total_minor = db.Column(db.Integer, nullable=False, default=0)

    notes = db.Column(db.Text, nullable=True)
    cancelled_reason = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())
    version_id = db.Column(db.Integer, nullable=False, default=1)

    shift = db.relationship("Shift", backref=db.backref("orders", lazy=True))
    payments = db.relationship("Payment", back_populates="order", order_by="Payment.id", lazy=True)
    __mapper_args__ = {"version_id_col": version_id}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shift_id": self.shift_id,
            "restaurant_id": self.restaurant_id,
            "order_number": self.order_number,
            "status": self.status,
            "subtotal_minor": self.subtotal_minor,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
            "tax_amount_minor": self.tax_amount_minor,
            "service_charge_minor": self.service_charge_minor,
            "total_minor": self.total_minor,
            "notes": self.notes,
            "cancelled_reason": self.cancelled_reason,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "version_id": self.version_id,
        }


class Payment(db.Model):
    """
    Tender recorded against an order.

    WHY: Orders can be split across methods (part cash, part visa).
    method is the raw identifier from the till ("cash", "visa", "cliq", ...);
    mapping to cash/card/mobile happens at reporting time.

    IMMUTABLE: never updated once recorded.
    """
    __tablename__ = "payments"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    method = db.Column(db.String(32), nullable=False, index=True)
    amount_minor = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    order = db.relationship("Order", back_populates="payments")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "method": self.method,
            "amount_minor": self.amount_minor,
            "created_at": to_utc_z(self.created_at),
        }


class Refund(db.Model):
    """
    Money returned to a customer against an order.

    NOTE: No payment method is stored. The Z-report attributes each refund
    back to the payment methods that funded the order.
    """
    __tablename__ = "refunds"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey("orders.id"), nullable=False, index=True)

    amount_minor = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.Text, nullable=True)
    refund_type = db.Column(db.String(16), nullable=False, default="full")  # full, partial

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    order = db.relationship("Order", backref=db.backref("refunds", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "order_id": self.order_id,
            "amount_minor": self.amount_minor,
            "reason": self.reason,
            "refund_type": self.refund_type,
            "created_at": to_utc_z(self.created_at),
        }
