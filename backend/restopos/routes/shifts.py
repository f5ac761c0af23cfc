# Overview: Flask API routes for shift operations and Z-reports; parses input and returns JSON responses.

"""
Shift API Routes

WHY: The till opens and closes shifts, records drawer movements and prints
the Z-report at close.

DESIGN:
- Shift lifecycle: open -> close (immutable once closed)
- Amounts in request bodies are major units ("12.500" or 12); responses
  carry minor-unit fields (*_minor) on records and decimal strings on reports
- Authentication is handled in front of this service
"""

from flask import Blueprint, request, jsonify, current_app

from ..services import shift_service, zreport_service
from ..services.shift_service import ShiftError
from ..services.ledger_reader import LedgerReadError
from ..validation import ValidationError, parse_amount, parse_int


shifts_bp = Blueprint("shifts", __name__, url_prefix="/api/shifts")


@shifts_bp.post("/")
@shifts_bp.post("")
def open_shift_route():
    """
    Open a shift.

    Request body:
    {
        "restaurant_id": 1,
        "cashier_id": 7,
        "opening_cash": "50.000",
        "branch_id": 2  (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        shift = shift_service.open_shift(
            restaurant_id=parse_int(data.get("restaurant_id"), "restaurant_id"),
            cashier_id=parse_int(data.get("cashier_id"), "cashier_id"),
            opening_cash_minor=parse_amount(data, "opening_cash"),
            branch_id=parse_int(data.get("branch_id"), "branch_id", required=False),
        )

        return jsonify({"shift": shift.to_dict()}), 201

    except (ValidationError, ShiftError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to open shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.get("/")
@shifts_bp.get("")
def list_shifts_route():
    try:
        restaurant_id = parse_int(request.args.get("restaurant_id"), "restaurant_id")
        limit = request.args.get("limit", 50, type=int)
        shifts = shift_service.list_shifts(
            restaurant_id,
            status=request.args.get("status"),
            limit=max(1, min(limit, 500)),
        )
        return jsonify({"shifts": [s.to_dict() for s in shifts]}), 200
    except (ValidationError, ShiftError) as e:
        return jsonify({"error": str(e)}), 400


@shifts_bp.get("/<int:shift_id>")
def get_shift_route(shift_id: int):
    shift = shift_service.get_shift(shift_id)
    if not shift:
        return jsonify({"error": "Shift not found"}), 404

    return jsonify({
        "shift": shift.to_dict(),
        "cash_transactions": [t.to_dict() for t in shift_service.get_shift_cash_transactions(shift_id)],
    }), 200


@shifts_bp.post("/<int:shift_id>/cash-transactions")
def record_cash_transaction_route(shift_id: int):
    """
    Record a drawer movement.

    Request body:
    {
        "transaction_type": "cash_in" | "cash_out",
        "amount": "5.000",
        "reason": "Change float top-up"  (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        txn = shift_service.record_cash_transaction(
            shift_id=shift_id,
            transaction_type=data.get("transaction_type"),
            amount_minor=parse_amount(data, "amount", allow_zero=False),
            reason=data.get("reason"),
        )

        return jsonify({"cash_transaction": txn.to_dict()}), 201

    except (ValidationError, ShiftError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to record cash transaction")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.post("/<int:shift_id>/close")
def close_shift_route(shift_id: int):
    """
    Close a shift and return its final Z-report (null if the ledger
    cannot be read after the close).

    Request body:
    {
        "closing_cash": "250.000",
        "notes": "..."  (optional)
    }
    """
    try:
        data = request.get_json(silent=True) or {}

        shift = shift_service.close_shift(
            shift_id=shift_id,
            closing_cash_minor=parse_amount(data, "closing_cash"),
            notes=data.get("notes"),
        )
    except (ValidationError, ShiftError) as e:
        return jsonify({"error": str(e)}), 400
    except Exception:
        current_app.logger.exception("Failed to close shift")
        return jsonify({"error": "Internal server error"}), 500

    # The close is already committed. A failed report leaves z_report null;
    # GET /<id>/z-report can be retried.
    try:
        report = zreport_service.compute_shift_report(shift.id)
    except LedgerReadError:
        current_app.logger.exception("Shift %s closed but its Z-report could not be built", shift.id)
        report = None

    return jsonify({
        "shift": shift.to_dict(),
        "z_report": report.to_dict(current_app.config["CURRENCY_DECIMALS"]) if report else None,
    }), 200


@shifts_bp.get("/<int:shift_id>/z-report")
def z_report_route(shift_id: int):
    """
    End-of-shift report. For an open shift this is a preview:
    cash_difference is null until the closing cash is counted.
    """
    try:
        report = zreport_service.compute_shift_report(shift_id)
    except LedgerReadError:
        current_app.logger.exception("Failed to load ledger for shift %s", shift_id)
        return jsonify({"error": "Internal server error"}), 500

    if report is None:
        return jsonify({"error": "Shift not found"}), 404

    return jsonify({"z_report": report.to_dict(current_app.config["CURRENCY_DECIMALS"])}), 200
