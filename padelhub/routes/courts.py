# Overview: Flask API routes for court operations; parses input and returns JSON responses.

# padelhub/routes/courts.py
"""
Court management routes.

SECURITY: All routes require authentication.
- Read operations require VIEW_COURTS permission
- Write operations require MANAGE_COURTS permission
"""
from flask import Blueprint, request

from ..services import court_service
from ..models import Court
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_court,
    ValidationError,
    NotFoundError,
    ConflictError,
)
from ..decorators import require_auth, require_permission

COURT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "court_number", "base_price_cents", "description", "is_active"},
    required_on_create={"name", "court_number"},
)

courts_bp = Blueprint("courts", __name__, url_prefix="/api/courts")


@courts_bp.get("")
@require_auth
@require_permission("VIEW_COURTS")
def list_courts():
    """
    List courts ordered by number.

    Query params:
    - active: "true" to return only active courts
    """
    active_only = request.args.get("active", "false").lower() == "true"
    return court_service.list_courts(active_only=active_only)


@courts_bp.get("/<int:court_id>")
@require_auth
@require_permission("VIEW_COURTS")
def get_court(court_id: int):
    try:
        court = court_service.get_court(court_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return court.to_dict(booking_count=court.bookings.count())


@courts_bp.post("")
@require_auth
@require_permission("MANAGE_COURTS")
def create_court_route():
    """Create a new court. Requires MANAGE_COURTS permission."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Court, payload=payload, policy=COURT_POLICY, partial=False)
        enforce_rules_court(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        created = court_service.create_court(patch=patch)
    except ConflictError as e:
        return {"error": str(e)}, 409

    return created.to_dict(booking_count=0), 201


@courts_bp.put("/<int:court_id>")
@require_auth
@require_permission("MANAGE_COURTS")
def update_court_route(court_id: int):
    """Update a court. Renumbering carries its bookings along."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Court, payload=payload, policy=COURT_POLICY, partial=True)
        enforce_rules_court(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        updated = court_service.update_court(court_id, patch=patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return updated.to_dict(), 200


@courts_bp.delete("/<int:court_id>")
@require_auth
@require_permission("MANAGE_COURTS")
def delete_court_route(court_id: int):
    """Delete a court that has no bookings."""
    try:
        court_service.delete_court(court_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return {"ok": True}, 200


@courts_bp.post("/<int:court_id>/toggle")
@require_auth
@require_permission("MANAGE_COURTS")
def toggle_court_route(court_id: int):
    """Activate or deactivate a court."""
    try:
        court = court_service.toggle_court_status(court_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return court.to_dict(), 200
