# Overview: Flask CLI command groups for schema bootstrap, shift operations and reports.

# backend/restopos/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System:
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Shifts:
# - python -m flask shifts list --restaurant-id 1 [--status open|closed] [--limit 20]
# - python -m flask shifts open --restaurant-id 1 --cashier-id 7 --opening-cash 50.000
# - python -m flask shifts cash-in 12 --amount 10.000 --reason "Change top-up"
# - python -m flask shifts cash-out 12 --amount 5.000 --reason "Ice delivery"
# - python -m flask shifts close 12 --closing-cash 250.000
#
# Reports:
# - python -m flask reports z-report 12 [--json]
#   Print the end-of-shift report (a preview while the shift is open).
# - python -m flask reports cash-differences --restaurant-id 1 [--date 2026-10-19] [--branch-id 2]

import json

import click
from flask import current_app
from flask.cli import with_appcontext

from .extensions import db
from .money import to_minor, format_minor
from .services import shift_service, zreport_service
from .services.shift_service import ShiftError
from .services.ledger_reader import LedgerReadError
from .time_utils import parse_iso_date, to_utc_z


def _amount(value: str) -> int:
    try:
        return to_minor(value, current_app.config["CURRENCY_DECIMALS"])
    except ValueError as e:
        raise click.BadParameter(str(e))


def _fmt(minor) -> str:
    value = format_minor(minor, current_app.config["CURRENCY_DECIMALS"])
    return value if value is not None else "-"


@click.group('system')
def system_group():
    """System bootstrap commands."""


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


# =============================================================================
# SHIFTS
# =============================================================================

@click.group('shifts')
def shifts_group():
    """Shift inspection and till commands."""


@shifts_group.command('list')
@click.option('--restaurant-id', type=int, required=True, help='Restaurant ID')
@click.option('--status', type=click.Choice(['open', 'closed']), help='Filter by status')
@click.option('--limit', type=int, default=20, show_default=True)
@with_appcontext
def list_shifts_cli(restaurant_id, status, limit):
    """
    List recent shifts.

    Example:
        flask shifts list --restaurant-id 1 --status closed
    """
    shifts = shift_service.list_shifts(restaurant_id, status=status, limit=limit)

    if not shifts:
        click.echo("No shifts found.")
        return

    click.echo("\n" + "="*100)
    click.echo(f"{'ID':<6} {'Cashier':<9} {'Branch':<8} {'Status':<8} {'Opened':<22} {'Closed':<22} {'Opening cash'}")
    click.echo("="*100)

    for shift in shifts:
        closed = to_utc_z(shift.closed_at) if shift.closed_at else "-"
        branch = shift.branch_id if shift.branch_id is not None else "-"
        click.echo(
            f"{shift.id:<6} {shift.cashier_id:<9} {branch:<8} {shift.status:<8} "
            f"{to_utc_z(shift.opened_at):<22} {closed:<22} {_fmt(shift.opening_cash_minor)}"
        )

    click.echo("="*100 + "\n")


@shifts_group.command('open')
@click.option('--restaurant-id', type=int, required=True)
@click.option('--cashier-id', type=int, required=True)
@click.option('--opening-cash', required=True, help='Opening float, e.g. 50.000')
@click.option('--branch-id', type=int)
@with_appcontext
def open_shift_cli(restaurant_id, cashier_id, opening_cash, branch_id):
    """Open a shift for a cashier."""
    try:
        shift = shift_service.open_shift(
            restaurant_id=restaurant_id,
            cashier_id=cashier_id,
            opening_cash_minor=_amount(opening_cash),
            branch_id=branch_id,
        )
        click.echo(f"PASS Opened shift {shift.id} for cashier {cashier_id}")
    except ShiftError as e:
        click.echo(f"FAIL Error: {str(e)}")


def _record_cash(shift_id, transaction_type, amount, reason):
    try:
        txn = shift_service.record_cash_transaction(shift_id, transaction_type, _amount(amount), reason)
        click.echo(f"PASS Recorded {transaction_type} of {_fmt(txn.amount_minor)} on shift {shift_id}")
    except ShiftError as e:
        click.echo(f"FAIL Error: {str(e)}")


@shifts_group.command('cash-in')
@click.argument('shift_id', type=int)
@click.option('--amount', required=True)
@click.option('--reason')
@with_appcontext
def cash_in_cli(shift_id, amount, reason):
    """Put cash into the drawer."""
    _record_cash(shift_id, "cash_in", amount, reason)


@shifts_group.command('cash-out')
@click.argument('shift_id', type=int)
@click.option('--amount', required=True)
@click.option('--reason')
@with_appcontext
def cash_out_cli(shift_id, amount, reason):
    """Take cash out of the drawer."""
    _record_cash(shift_id, "cash_out", amount, reason)


@shifts_group.command('close')
@click.argument('shift_id', type=int)
@click.option('--closing-cash', required=True, help='Counted drawer cash')
@click.option('--notes')
@with_appcontext
def close_shift_cli(shift_id, closing_cash, notes):
    """Close a shift with the counted drawer cash."""
    try:
        shift = shift_service.close_shift(shift_id, _amount(closing_cash), notes)
        click.echo(f"PASS Closed shift {shift.id}")
    except ShiftError as e:
        click.echo(f"FAIL Error: {str(e)}")


# =============================================================================
# REPORTS
# =============================================================================

@click.group('reports')
def reports_group():
    """Reporting commands."""


_Z_REPORT_SECTIONS = [
    ("GROSS SALES (before refunds)", [
        ("Gross sales", "gross_sales"),
        ("Net sales (subtotal)", "gross_net_sales"),
        ("Tax", "gross_tax"),
        ("Service charge", "gross_service_charge"),
        ("Discounts given", "total_discounts"),
        ("Cash payments", "gross_cash_payments"),
        ("Card payments", "gross_card_payments"),
        ("Mobile payments", "gross_mobile_payments"),
    ]),
    ("REFUNDS", [
        ("Refunds total", "refunds_total"),
        ("  est. tax", "refund_tax"),
        ("  est. service charge", "refund_service_charge"),
        ("  est. subtotal", "refund_subtotal"),
        ("Cash refunds", "cash_refunds"),
        ("Card refunds", "card_refunds"),
        ("Mobile refunds", "mobile_refunds"),
    ]),
    ("ADJUSTED (after refunds)", [
        ("Adjusted sales", "adjusted_sales"),
        ("Adjusted net sales", "adjusted_net_sales"),
        ("Adjusted tax", "adjusted_tax"),
        ("Adjusted service charge", "adjusted_service_charge"),
        ("Net cash", "net_cash_payments"),
        ("Net card", "net_card_payments"),
        ("Net mobile", "net_mobile_payments"),
    ]),
    ("CASH DRAWER", [
        ("Opening cash", "opening_cash"),
        ("Cash in", "cash_in"),
        ("Cash out", "cash_out"),
        ("Expected cash", "expected_cash"),
        ("Closing cash", "closing_cash"),
        ("Difference", "cash_difference"),
    ]),
]


@reports_group.command('z-report')
@click.argument('shift_id', type=int)
@click.option('--json', 'as_json', is_flag=True, help='Print the report as JSON')
@with_appcontext
def z_report_cli(shift_id, as_json):
    """
    Print the end-of-shift (Z) report.

    Example:
        flask reports z-report 12
        flask reports z-report 12 --json
    """
    try:
        report = zreport_service.compute_shift_report(shift_id)
    except LedgerReadError as e:
        raise click.ClickException(f"Failed to load shift ledger: {e}")

    if report is None:
        raise click.ClickException(f"Shift {shift_id} not found")

    if as_json:
        data = report.to_dict(current_app.config["CURRENCY_DECIMALS"])
        click.echo(json.dumps(data, sort_keys=True, indent=2))
        return

    title = "Z-REPORT" if not report.is_preview else "Z-REPORT (PREVIEW - shift open)"
    click.echo("\n" + "="*60)
    click.echo(f"{title}  shift {report.shift_id}")
    click.echo(f"Opened: {to_utc_z(report.opened_at)}   Closed: {to_utc_z(report.closed_at) or '-'}")
    click.echo(f"Orders: {report.total_orders}   Cancelled: {report.cancelled_orders}   Refunds: {report.refund_count}")

    for heading, rows in _Z_REPORT_SECTIONS:
        click.echo("-"*60)
        click.echo(heading)
        for label, field in rows:
            click.echo(f"  {label:<32} {_fmt(getattr(report, field)):>20}")

    click.echo("="*60 + "\n")


@reports_group.command('cash-differences')
@click.option('--restaurant-id', type=int, required=True)
@click.option('--date', 'day', help='Day in YYYY-MM-DD (UTC), default today')
@click.option('--branch-id', type=int)
@with_appcontext
def cash_differences_cli(restaurant_id, day, branch_id):
    """List drawer differences for shifts closed on a day."""
    try:
        parsed_day = parse_iso_date(day)
    except ValueError:
        raise click.BadParameter("date must be YYYY-MM-DD")

    try:
        report = zreport_service.cash_differences(restaurant_id, parsed_day, branch_id)
    except LedgerReadError as e:
        raise click.ClickException(f"Failed to load shift ledger: {e}")

    click.echo(f"\nCash differences for {report['date']} ({report['closed_shifts_count']} closed shifts)")
    click.echo("="*80)
    click.echo(f"{'Shift':<8} {'Cashier':<9} {'Expected':>18} {'Actual':>18} {'Difference':>18}")
    click.echo("="*80)
    for row in report["rows"]:
        click.echo(
            f"{row['shift_id']:<8} {row['cashier_id']:<9} {row['expected_cash']:>18} "
            f"{row['actual_cash']:>18} {row['difference']:>18}"
        )
    click.echo("="*80)
    click.echo(f"{'Total difference':<56} {report['total_difference']:>18}\n")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(shifts_group)
    app.cli.add_command(reports_group)
