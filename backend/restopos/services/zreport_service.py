# Overview: Service-layer entry points for Z-reports and daily cash differences.

from __future__ import annotations

from datetime import date

from flask import current_app

from ..extensions import db
from ..models import Shift
from restopos.money import format_minor
from restopos.time_utils import day_bounds, to_utc_z, utcnow
from .ledger_reader import read_shift_ledger, ShiftNotFound, LedgerReadError
from .payment_buckets import PaymentBucketer
from .reconciliation import ZReport, compute_report


class ReportError(Exception):
    """Raised when report parameters are invalid."""
    pass


def configured_bucketer() -> PaymentBucketer:
    return PaymentBucketer.from_config(current_app.config)


def compute_shift_report(shift_id: int) -> ZReport | None:
    """
    Compute the Z-report for a shift.

    Returns None when the shift does not exist. LedgerReadError propagates:
    a report is never built from a partial ledger.
    """
    try:
        ledger = read_shift_ledger(shift_id)
    except ShiftNotFound:
        return None

    report = compute_report(ledger, configured_bucketer())

    skipped = len(ledger.refunds) - report.refund_count
    if skipped:
        current_app.logger.debug(
            "Z-report shift=%s skipped %s refund(s) on uncounted orders", shift_id, skipped
        )
    current_app.logger.debug(
        "Z-report shift=%s orders=%s refunds=%s expected_cash=%s",
        shift_id, report.total_orders, report.refund_count, report.expected_cash,
    )
    return report


def cash_differences(restaurant_id: int, day: date | None = None, branch_id: int | None = None) -> dict:
    """
    Cash variance for every shift closed on `day` (UTC, default today), newest first.

    WHY: Owners review drawer shortages per day. Expected cash comes from the
    same reconciliation as the Z-report, so both screens always agree.
    """
    if restaurant_id is None:
        raise ReportError("restaurant_id is required")
    if day is None:
        day = utcnow().date()

    start, end = day_bounds(day)
    query = db.session.query(Shift).filter(
        Shift.restaurant_id == restaurant_id,
        Shift.closed_at.isnot(None),
        Shift.closed_at >= start,
        Shift.closed_at < end,
    )
    if branch_id is not None:
        query = query.filter(Shift.branch_id == branch_id)

    shifts = query.order_by(Shift.closed_at.desc(), Shift.id.desc()).all()
    decimals = current_app.config["CURRENCY_DECIMALS"]
    bucketer = configured_bucketer()

    rows = []
    total_difference = 0
    for shift in shifts:
        try:
            report = compute_report(read_shift_ledger(shift.id), bucketer)
        except ShiftNotFound as exc:
            raise LedgerReadError(f"Shift {shift.id} disappeared while building cash differences") from exc

        difference = report.cash_difference or 0
        total_difference += difference
        rows.append({
            "shift_id": shift.id,
            "cashier_id": shift.cashier_id,
            "closed_at": to_utc_z(shift.closed_at),
            "expected_cash": format_minor(report.expected_cash, decimals),
            "actual_cash": format_minor(report.closing_cash, decimals),
            "difference": format_minor(difference, decimals),
        })

    return {
        "restaurant_id": restaurant_id,
        "branch_id": branch_id,
        "date": day.isoformat(),
        "rows": rows,
        "total_difference": format_minor(total_difference, decimals),
        "closed_shifts_count": len(rows),
    }
