from flask import Blueprint, jsonify, request

from padelhub.decorators import require_auth, require_permission
from padelhub.services import reporting_service


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales-summary")
@require_auth
@require_permission("VIEW_SALES_REPORTS")
def sales_summary():
    date_from = request.args.get("date_from") or None
    date_to = request.args.get("date_to") or None

    try:
        report = reporting_service.get_sales_summary(date_from=date_from, date_to=date_to)
        return jsonify(report), 200
    except reporting_service.ReportError as exc:
        return jsonify({"error": str(exc)}), 400
