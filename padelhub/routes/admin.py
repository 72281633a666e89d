# Overview: Flask API routes for admin operations; parses input and returns JSON responses.

# padelhub/routes/admin.py
"""
Admin routes for user management.

All endpoints require authentication and the MANAGE_USERS permission
(ADMIN role).
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..models import User
from ..services import auth_service, session_service
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_user,
    ValidationError,
    NotFoundError,
    ConflictError,
)
from ..decorators import require_auth, require_permission

USER_POLICY = ModelValidationPolicy(
    writable_fields={"email", "name", "role"},
    required_on_create={"email", "name"},
)

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")


def _split_password(payload: dict) -> tuple[dict, str | None]:
    payload = dict(payload)
    password = payload.pop("password", None)
    return payload, password


# =============================================================================
# USER MANAGEMENT
# =============================================================================

@admin_bp.get("/users")
@require_auth
@require_permission("MANAGE_USERS")
def list_users():
    """List all users, newest first."""
    users = auth_service.list_users()
    return jsonify({"users": [u.to_dict() for u in users], "count": len(users)})


@admin_bp.get("/users/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def get_user(user_id: int):
    """Get a specific user by ID."""
    try:
        user = auth_service.get_user(user_id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    return jsonify({"user": user.to_dict()})


@admin_bp.post("/users")
@require_auth
@require_permission("MANAGE_USERS")
def create_user():
    """
    Create a new user.

    Request body:
    - email: str (required)
    - name: str (required)
    - password: str (required, min 6 chars)
    - role: "ADMIN" | "STAFF" (optional, default STAFF)
    """
    payload, password = _split_password(request.get_json(silent=True) or {})

    try:
        patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
        enforce_rules_user(patch)
        if not password:
            raise ValidationError("Missing required fields: password")
        user = auth_service.create_user(
            email=patch["email"],
            name=patch["name"],
            password=password,
            role=patch.get("role") or "STAFF",
        )
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"user": user.to_dict()}), 201


@admin_bp.put("/users/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def update_user(user_id: int):
    """
    Update a user. Omitting password keeps the current one; setting it
    (or changing the role) signs the user out everywhere.
    """
    payload, password = _split_password(request.get_json(silent=True) or {})

    try:
        patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
        enforce_rules_user(patch)
        before_role = auth_service.get_user(user_id).role
        user = auth_service.update_user(user_id, patch=patch, password=password or None)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500

    if (password or user.role != before_role) and user.id != g.current_user.id:
        session_service.revoke_all_user_sessions(user.id, reason="Credentials changed by admin")

    return jsonify({"user": user.to_dict()}), 200


@admin_bp.delete("/users/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def delete_user(user_id: int):
    """Delete a user. The last ADMIN and users with history cannot be deleted."""
    try:
        auth_service.delete_user(user_id, actor_user_id=g.current_user.id)
    except NotFoundError as e:
        return jsonify({"error": str(e)}), 404
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to delete user")
        return jsonify({"error": "Internal server error"}), 500

    return jsonify({"ok": True}), 200
