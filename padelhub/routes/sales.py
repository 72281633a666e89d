# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

# padelhub/routes/sales.py
"""Sales history routes. Sales are created and removed through /api/bookings."""

from flask import Blueprint, request, jsonify

from ..services import sales_service
from ..time_utils import date_range
from ..validation import NotFoundError
from ..decorators import require_auth, require_permission


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_auth
@require_permission("VIEW_SALES_REPORTS")
def list_sales_route():
    """
    Sales history, newest first.

    Query params:
    - date_from, date_to: YYYY-MM-DD, inclusive (optional)
    - booking_id: int (optional)
    - limit: int (default 100, max 1000)
    """
    try:
        date_from, date_to = date_range(request.args.get("date_from"), request.args.get("date_to"))
    except ValueError:
        return jsonify({"error": "date_from/date_to must be YYYY-MM-DD"}), 400

    limit = min(max(request.args.get("limit", 100, type=int), 1), 1000)
    sales = sales_service.list_sales(
        booking_id=request.args.get("booking_id", type=int),
        date_from=date_from,
        date_to=date_to,
        limit=limit,
    )
    rows = [sales_service.sale_history_row(s) for s in sales]
    return jsonify({"sales": rows, "count": len(rows)})


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_permission("VIEW_SALES_REPORTS")
def get_sale_route(sale_id: int):
    try:
        sale = sales_service.get_sale(sale_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"sale": sales_service.sale_history_row(sale)}), 200
