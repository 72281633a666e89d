# Overview: Flask API routes for booking operations; parses input and returns JSON responses.

# padelhub/routes/bookings.py
"""Booking API routes: slots, status, extra hours and charged items."""

from flask import Blueprint, request, jsonify, g, current_app

from ..models import Booking, Sale, BOOKING_STATUSES
from ..services import booking_service, sales_service
from ..services.sales_service import InsufficientStockError
from ..time_utils import parse_iso_date
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_booking,
    enforce_rules_sale,
    parse_extra_hours,
    ValidationError,
    NotFoundError,
    ConflictError,
)
from ..decorators import require_auth, require_permission

BOOKING_POLICY = ModelValidationPolicy(
    writable_fields={
        "court_number",
        "customer_name",
        "customer_phone",
        "date",
        "start_time",
        "end_time",
        "base_price_cents",
        "notes",
    },
    required_on_create={"court_number", "customer_name", "date", "start_time", "end_time"},
)

BOOKING_STATUS_POLICY = ModelValidationPolicy(
    writable_fields={"status"},
    required_on_create={"status"},
)

SALE_POLICY = ModelValidationPolicy(
    writable_fields={"inventory_item_id", "quantity"},
    required_on_create={"inventory_item_id", "quantity"},
)


bookings_bp = Blueprint("bookings", __name__, url_prefix="/api/bookings")


@bookings_bp.get("")
@require_auth
@require_permission("VIEW_BOOKINGS")
def list_bookings_route():
    """
    List bookings, latest slot first.

    Query params:
    - status: ACTIVE | COMPLETED | CANCELLED (optional)
    - date_from, date_to: YYYY-MM-DD, inclusive (optional)
    """
    status = request.args.get("status") or None
    if status and status not in BOOKING_STATUSES:
        return jsonify({"error": f"status must be one of {', '.join(BOOKING_STATUSES)}"}), 400

    try:
        date_from = parse_iso_date(request.args.get("date_from"))
        date_to = parse_iso_date(request.args.get("date_to"))
    except ValueError:
        return jsonify({"error": "date_from/date_to must be YYYY-MM-DD"}), 400

    bookings = booking_service.list_bookings(status=status, date_from=date_from, date_to=date_to)
    result = []
    for booking in bookings:
        data = booking.to_dict()
        data["totals"] = booking_service.booking_totals(booking)
        result.append(data)

    return jsonify({"bookings": result, "count": len(result)})


@bookings_bp.get("/<int:booking_id>")
@require_auth
@require_permission("VIEW_BOOKINGS")
def get_booking_route(booking_id: int):
    """Booking with its sales and cost breakdown."""
    try:
        booking = booking_service.get_booking(booking_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404

    return jsonify({"booking": booking_service.booking_detail(booking)}), 200


@bookings_bp.post("")
@require_auth
@require_permission("MANAGE_BOOKINGS")
def create_booking_route():
    """
    Create a booking on an active court.

    base_price_cents defaults to the court's base price.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Booking, payload=payload, policy=BOOKING_POLICY, partial=False)
        enforce_rules_booking(patch)
        booking = booking_service.create_booking(patch=patch, actor_user_id=g.current_user.id)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create booking")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"booking": booking_service.booking_detail(booking)}), 201


@bookings_bp.put("/<int:booking_id>")
@require_auth
@require_permission("MANAGE_BOOKINGS")
def update_booking_route(booking_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Booking, payload=payload, policy=BOOKING_POLICY, partial=True)
        enforce_rules_booking(patch)
        booking = booking_service.update_booking(booking_id, patch=patch)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update booking %s", booking_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"booking": booking_service.booking_detail(booking)}), 200


@bookings_bp.post("/<int:booking_id>/status")
@require_auth
@require_permission("MANAGE_BOOKINGS")
def update_status_route(booking_id: int):
    """
    Complete or cancel a booking.

    Request body: {"status": "COMPLETED" | "CANCELLED" | "ACTIVE"}
    Leaving a terminal status is a 409.
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Booking, payload=payload, policy=BOOKING_STATUS_POLICY, partial=False)
        enforce_rules_booking(patch)
        booking = booking_service.update_booking_status(booking_id, patch["status"])
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update booking status %s", booking_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"booking": booking.to_dict()}), 200


@bookings_bp.delete("/<int:booking_id>")
@require_auth
@require_permission("MANAGE_BOOKINGS")
def delete_booking_route(booking_id: int):
    """Delete a booking; stock of its non-rental sales is restored."""
    try:
        booking_service.delete_booking(booking_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to delete booking %s", booking_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"ok": True}), 200


@bookings_bp.post("/<int:booking_id>/extra-hours")
@require_auth
@require_permission("MANAGE_BOOKINGS")
def add_extra_hours_route(booking_id: int):
    """
    Add extra hours to an active booking.

    Request body:
    - hours: number > 0
    - price_per_hour_cents: int >= 0 (replaces the booking's current rate)
    """
    payload = request.get_json(silent=True) or {}

    try:
        hours, price_cents = parse_extra_hours(payload)
        booking = booking_service.add_extra_hours(
            booking_id=booking_id,
            hours=hours,
            price_per_hour_cents=price_cents,
            actor_user_id=g.current_user.id,
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to add extra hours to booking %s", booking_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"booking": booking_service.booking_detail(booking)}), 200


@bookings_bp.post("/<int:booking_id>/sales")
@require_auth
@require_permission("CREATE_SALE")
def add_sale_route(booking_id: int):
    """
    Charge an item to a booking.

    Request body: {"inventory_item_id": int, "quantity": int >= 1}
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Sale, payload=payload, policy=SALE_POLICY, partial=False)
        enforce_rules_sale(patch)
        sale = sales_service.add_sale(
            booking_id=booking_id,
            item_id=patch["inventory_item_id"],
            quantity=patch["quantity"],
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except InsufficientStockError as e:
        return jsonify({"error": str(e), "details": e.details}), 409
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to add sale to booking %s", booking_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"sale": sale.to_dict()}), 201


@bookings_bp.delete("/<int:booking_id>/sales/<int:sale_id>")
@require_auth
@require_permission("CREATE_SALE")
def remove_sale_route(booking_id: int, sale_id: int):
    """Remove a charged item; non-rental stock is restored."""
    try:
        sales_service.remove_sale(sale_id=sale_id, booking_id=booking_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except Exception:
        current_app.logger.exception("Failed to remove sale %s", sale_id)
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"ok": True}), 200
