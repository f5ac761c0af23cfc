from flask import Blueprint, jsonify, request, current_app

from ..services import zreport_service
from ..services.ledger_reader import LedgerReadError
from ..validation import ValidationError, parse_day, parse_int


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/cash-differences")
def cash_differences_report():
    try:
        restaurant_id = parse_int(request.args.get("restaurant_id"), "restaurant_id")
        branch_id = parse_int(request.args.get("branch_id"), "branch_id", required=False)
        day = parse_day(request.args.get("date"))
    except ValidationError as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        report = zreport_service.cash_differences(
            restaurant_id=restaurant_id,
            day=day,
            branch_id=branch_id,
        )
        return jsonify(report), 200
    except zreport_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
    except LedgerReadError:
        current_app.logger.exception("Failed to build cash differences report")
        return jsonify({"error": "Internal server error"}), 500
