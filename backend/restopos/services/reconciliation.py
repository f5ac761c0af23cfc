# Overview: Pure end-of-shift (Z-report) reconciliation over a loaded shift ledger.

"""
Shift Reconciliation Engine (Z-report)

WHY: At shift close the till must balance to the fils: gross sales, how
they were paid, what was refunded and through which channel, and how much
cash should be in the drawer.

PIPELINE (single fold over immutable records):
- Classify orders: only paid/refunded orders count
- Gross: totals, discounts and payment buckets over counted orders
- Refunds: attribute each refund to the buckets that funded its order
- Adjusted: gross minus refunds, NEVER clamped (negatives flag bad data)
- Drawer: opening + net cash + cash in - cash out vs counted closing cash

All amounts are integers in minor units. Nothing here reads the database;
see ledger_reader for that.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from fractions import Fraction
from functools import reduce
from typing import Iterable

from restopos.models.orders import (
    ORDER_STATUS_PAID,
    ORDER_STATUS_REFUNDED,
    ORDER_STATUS_CANCELLED,
    DISCOUNT_PERCENTAGE,
    DISCOUNT_FIXED,
)
from restopos.models.shifts import CASH_IN, CASH_OUT
from restopos.money import div_round_half_up, format_minor
from restopos.time_utils import to_utc_z
from .ledger_reader import ShiftLedger, OrderRecord, RefundRecord, CashTransactionRecord, PaymentRecord
from .payment_buckets import PaymentBucketer, DEFAULT_BUCKETER, BUCKET_CASH


COUNTED_STATUSES = frozenset({ORDER_STATUS_PAID, ORDER_STATUS_REFUNDED})

# Older tills wrote "percent"
PERCENTAGE_DISCOUNT_TYPES = frozenset({DISCOUNT_PERCENTAGE, "percent"})

BASIS_POINTS = 10_000


# =============================================================================
# ORDER CLASSIFIER / DISCOUNTS
# =============================================================================

def is_counted(order: OrderRecord) -> bool:
    """Only fiscally completed sales take part in the report."""
    return order.status in COUNTED_STATUSES


def discount_amount(order: OrderRecord) -> int:
    """
    Discount granted on an order, in minor units.

    percentage: subtotal x bps / 10000, half-up
    fixed: discount_value as-is
    none / non-positive value: 0
    """
    if not order.discount_value or order.discount_value <= 0:
        return 0
    if order.discount_type in PERCENTAGE_DISCOUNT_TYPES:
        return div_round_half_up(order.subtotal * order.discount_value, BASIS_POINTS)
    if order.discount_type == DISCOUNT_FIXED:
        return order.discount_value
    return 0


# =============================================================================
# ACCUMULATORS
# =============================================================================

@dataclass(frozen=True)
class BucketAmounts:
    cash: int = 0
    card: int = 0
    mobile: int = 0

    def plus(self, bucket: str, amount: int) -> "BucketAmounts":
        return replace(self, **{bucket: getattr(self, bucket) + amount})

    def __add__(self, other: "BucketAmounts") -> "BucketAmounts":
        return BucketAmounts(self.cash + other.cash, self.card + other.card, self.mobile + other.mobile)

    def __sub__(self, other: "BucketAmounts") -> "BucketAmounts":
        return BucketAmounts(self.cash - other.cash, self.card - other.card, self.mobile - other.mobile)

    @property
    def total(self) -> int:
        return self.cash + self.card + self.mobile


@dataclass(frozen=True)
class GrossTotals:
    order_count: int = 0
    sales: int = 0
    net_sales: int = 0
    tax: int = 0
    service_charge: int = 0
    discounts: int = 0
    payments: BucketAmounts = BucketAmounts()


@dataclass(frozen=True)
class RefundAllocation:
    """One refund split across buckets, with its estimated composition."""
    amount: int
    buckets: BucketAmounts
    tax: int = 0
    service_charge: int = 0
    subtotal: int = 0


@dataclass(frozen=True)
class RefundTotals:
    count: int = 0
    total: int = 0
    tax: int = 0
    service_charge: int = 0
    subtotal: int = 0
    buckets: BucketAmounts = BucketAmounts()

    def plus(self, allocation: RefundAllocation) -> "RefundTotals":
        return RefundTotals(
            count=self.count + 1,
            total=self.total + allocation.amount,
            tax=self.tax + allocation.tax,
            service_charge=self.service_charge + allocation.service_charge,
            subtotal=self.subtotal + allocation.subtotal,
            buckets=self.buckets + allocation.buckets,
        )


@dataclass(frozen=True)
class CashDrawer:
    opening_cash: int
    cash_in: int
    cash_out: int
    expected_cash: int
    closing_cash: int | None
    cash_difference: int | None


# =============================================================================
# GROSS AGGREGATOR
# =============================================================================

def _bucket_payments(payments: Iterable[PaymentRecord], bucketer: PaymentBucketer) -> BucketAmounts:
    amounts = BucketAmounts()
    for payment in payments:
        bucket = bucketer.bucket(payment.method)
        if bucket is not None:
            amounts = amounts.plus(bucket, payment.amount)
    return amounts


def aggregate_gross(orders: Iterable[OrderRecord], bucketer: PaymentBucketer = DEFAULT_BUCKETER) -> GrossTotals:
    """Fold counted orders into gross figures. Callers pass counted orders only."""
    def _fold(acc: GrossTotals, order: OrderRecord) -> GrossTotals:
        return GrossTotals(
            order_count=acc.order_count + 1,
            sales=acc.sales + order.total,
            net_sales=acc.net_sales + order.subtotal,
            tax=acc.tax + order.tax_amount,
            service_charge=acc.service_charge + order.service_charge,
            discounts=acc.discounts + discount_amount(order),
            payments=acc.payments + _bucket_payments(order.payments, bucketer),
        )

    return reduce(_fold, orders, GrossTotals())


# =============================================================================
# REFUND ALLOCATOR
# =============================================================================

def _split_proportionally(amount: int, weights: list[int]) -> list[int]:
    """
    Split an integer amount by weights using the largest-remainder method.

    The parts always sum exactly to `amount`. Ties go to the earlier weight.
    """
    weight_sum = sum(weights)
    exact = [Fraction(amount * w, weight_sum) for w in weights]
    parts = [share.numerator // share.denominator for share in exact]

    # floor(x) <= x for every share, so the shortfall is in [0, len(weights))
    shortfall = amount - sum(parts)
    by_remainder = sorted(range(len(weights)), key=lambda i: (-(exact[i] - parts[i]), i))
    for i in by_remainder[:shortfall]:
        parts[i] += 1
    return parts


def allocate_refund(
    refund: RefundRecord,
    order: OrderRecord,
    bucketer: PaymentBucketer = DEFAULT_BUCKETER,
) -> RefundAllocation:
    """
    Attribute one refund to payment buckets.

    Refunds carry no payment method, so the order's payments decide:
    - no supported payment (or they sum to zero): all to cash. This is the
      worst case for the drawer, chosen on purpose; do not guess a bucket.
    - one supported payment: all to its bucket
    - split payment: proportional to each payment's share

    The tax/service/subtotal split is an ESTIMATE: refund / order total
    applied to the order's original figures. Which line items were actually
    returned is not recorded, so a refund of a tax-exempt item alone is
    over-attributed tax here.
    """
    amount = refund.amount
    supported = [
        (bucket, payment.amount)
        for payment in order.payments
        for bucket in [bucketer.bucket(payment.method)]
        if bucket is not None
    ]
    supported_sum = sum(paid for _, paid in supported)

    buckets = BucketAmounts()
    if not supported or supported_sum == 0:
        buckets = buckets.plus(BUCKET_CASH, amount)
    elif len(supported) == 1:
        buckets = buckets.plus(supported[0][0], amount)
    else:
        parts = _split_proportionally(amount, [paid for _, paid in supported])
        for (bucket, _), part in zip(supported, parts):
            buckets = buckets.plus(bucket, part)

    tax = service_charge = subtotal = 0
    if order.total > 0:
        tax = div_round_half_up(order.tax_amount * amount, order.total)
        service_charge = div_round_half_up(order.service_charge * amount, order.total)
        subtotal = div_round_half_up(order.subtotal * amount, order.total)

    return RefundAllocation(
        amount=amount,
        buckets=buckets,
        tax=tax,
        service_charge=service_charge,
        subtotal=subtotal,
    )


def aggregate_refunds(
    refunds: Iterable[RefundRecord],
    counted_orders: dict[int, OrderRecord],
    bucketer: PaymentBucketer = DEFAULT_BUCKETER,
) -> RefundTotals:
    """
    Fold refunds into totals.

    A refund whose order is not a counted order (cancelled, voided, open or
    missing) is skipped and contributes nothing, not even to the count.
    """
    def _fold(acc: RefundTotals, refund: RefundRecord) -> RefundTotals:
        order = counted_orders.get(refund.order_id)
        if order is None:
            return acc
        return acc.plus(allocate_refund(refund, order, bucketer))

    return reduce(_fold, refunds, RefundTotals())


# =============================================================================
# CASH DRAWER RECONCILER
# =============================================================================

def reconcile_cash(
    opening_cash: int,
    net_cash_payments: int,
    cash_transactions: Iterable[CashTransactionRecord],
    closing_cash: int | None,
) -> CashDrawer:
    """
    expected = opening + net cash payments + cash in - cash out

    Cash refunds are already inside net_cash_payments; they are not
    subtracted a second time. The difference is None while the shift is
    still open.
    """
    transactions = tuple(cash_transactions)
    cash_in = sum(t.amount for t in transactions if t.transaction_type == CASH_IN)
    cash_out = sum(t.amount for t in transactions if t.transaction_type == CASH_OUT)
    expected = opening_cash + net_cash_payments + cash_in - cash_out

    return CashDrawer(
        opening_cash=opening_cash,
        cash_in=cash_in,
        cash_out=cash_out,
        expected_cash=expected,
        closing_cash=closing_cash,
        cash_difference=closing_cash - expected if closing_cash is not None else None,
    )


# =============================================================================
# REPORT
# =============================================================================

_AMOUNT_FIELDS = (
    "opening_cash", "closing_cash",
    "gross_sales", "gross_net_sales", "gross_tax", "gross_service_charge", "total_discounts",
    "gross_cash_payments", "gross_card_payments", "gross_mobile_payments",
    "refunds_total", "refund_tax", "refund_service_charge", "refund_subtotal",
    "cash_refunds", "card_refunds", "mobile_refunds",
    "adjusted_sales", "adjusted_net_sales", "adjusted_tax", "adjusted_service_charge",
    "net_cash_payments", "net_card_payments", "net_mobile_payments",
    "cash_in", "cash_out", "expected_cash", "cash_difference",
)


@dataclass(frozen=True)
class ZReport:
    """End-of-shift report. Amounts in minor units; any of them may be negative."""
    shift_id: int
    opened_at: datetime | None
    closed_at: datetime | None
    opening_cash: int
    closing_cash: int | None

    total_orders: int
    cancelled_orders: int
    refund_count: int

    # Gross (before refunds)
    gross_sales: int
    gross_net_sales: int
    gross_tax: int
    gross_service_charge: int
    total_discounts: int
    gross_cash_payments: int
    gross_card_payments: int
    gross_mobile_payments: int

    # Refunds
    refunds_total: int
    refund_tax: int
    refund_service_charge: int
    refund_subtotal: int
    cash_refunds: int
    card_refunds: int
    mobile_refunds: int

    # Adjusted (after refunds)
    adjusted_sales: int
    adjusted_net_sales: int
    adjusted_tax: int
    adjusted_service_charge: int
    net_cash_payments: int
    net_card_payments: int
    net_mobile_payments: int

    # Cash drawer
    cash_in: int
    cash_out: int
    expected_cash: int
    cash_difference: int | None

    @property
    def is_preview(self) -> bool:
        """True while the shift is open (no counted closing cash yet)."""
        return self.closing_cash is None

    def to_dict(self, decimals: int) -> dict:
        data = {
            "shift_id": self.shift_id,
            "opened_at": to_utc_z(self.opened_at),
            "closed_at": to_utc_z(self.closed_at),
            "is_preview": self.is_preview,
            "total_orders": self.total_orders,
            "cancelled_orders": self.cancelled_orders,
            "refund_count": self.refund_count,
        }
        for name in _AMOUNT_FIELDS:
            data[name] = format_minor(getattr(self, name), decimals)
        return data


def compute_report(ledger: ShiftLedger, bucketer: PaymentBucketer = DEFAULT_BUCKETER) -> ZReport:
    """Compute the Z-report for an already-loaded shift ledger. Pure."""
    counted = tuple(o for o in ledger.orders if is_counted(o))
    cancelled = sum(1 for o in ledger.orders if o.status == ORDER_STATUS_CANCELLED)

    gross = aggregate_gross(counted, bucketer)
    refunds = aggregate_refunds(ledger.refunds, {o.id: o for o in counted}, bucketer)
    net_payments = gross.payments - refunds.buckets

    shift = ledger.shift
    drawer = reconcile_cash(shift.opening_cash, net_payments.cash, ledger.cash_transactions, shift.closing_cash)

    return ZReport(
        shift_id=shift.id,
        opened_at=shift.opened_at,
        closed_at=shift.closed_at,
        opening_cash=shift.opening_cash,
        closing_cash=shift.closing_cash,
        total_orders=gross.order_count,
        cancelled_orders=cancelled,
        refund_count=refunds.count,
        gross_sales=gross.sales,
        gross_net_sales=gross.net_sales,
        gross_tax=gross.tax,
        gross_service_charge=gross.service_charge,
        total_discounts=gross.discounts,
        gross_cash_payments=gross.payments.cash,
        gross_card_payments=gross.payments.card,
        gross_mobile_payments=gross.payments.mobile,
        refunds_total=refunds.total,
        refund_tax=refunds.tax,
        refund_service_charge=refunds.service_charge,
        refund_subtotal=refunds.subtotal,
        cash_refunds=refunds.buckets.cash,
        card_refunds=refunds.buckets.card,
        mobile_refunds=refunds.buckets.mobile,
        adjusted_sales=gross.sales - refunds.total,
        adjusted_net_sales=gross.net_sales - refunds.subtotal,
        adjusted_tax=gross.tax - refunds.tax,
        adjusted_service_charge=gross.service_charge - refunds.service_charge,
        net_cash_payments=net_payments.cash,
        net_card_payments=net_payments.card,
        net_mobile_payments=net_payments.mobile,
        cash_in=drawer.cash_in,
        cash_out=drawer.cash_out,
        expected_cash=drawer.expected_cash,
        cash_difference=drawer.cash_difference,
    )
