# padelhub/routes/inventory.py
"""
Inventory management routes.

SECURITY: All routes require authentication.
- View operations require VIEW_INVENTORY permission
- Category writes require MANAGE_CATEGORIES permission
- Item create/update require MANAGE_ITEMS, delete requires DELETE_ITEMS
- Stock adjustments require ADJUST_STOCK permission

Item quantity is set once at creation; afterwards it only moves through
stock adjustments and sales.
"""
from flask import Blueprint, request, g, current_app

from ..models import InventoryCategory, InventoryItem, StockTransaction
from ..services import inventory_service
from ..services.inventory_service import InvalidAdjustmentError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    NotFoundError,
    ConflictError,
    enforce_rules_category,
    enforce_rules_item,
    enforce_rules_stock_adjustment,
)
from ..decorators import require_auth, require_permission


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")

CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "type"},
    required_on_create={"name", "type"},
)

ITEM_CREATE_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "sku",
        "category_id",
        "quantity",
        "cost_price_cents",
        "sell_price_cents",
        "min_stock",
        "is_rental",
    },
    required_on_create={"name", "sku", "category_id", "cost_price_cents", "sell_price_cents"},
)

ITEM_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields=ITEM_CREATE_POLICY.writable_fields - {"quantity"},
)

STOCK_ADJUSTMENT_POLICY = ModelValidationPolicy(
    writable_fields={"type", "quantity", "notes"},
    required_on_create={"type", "quantity"},
)


# =============================================================================
# Categories
# =============================================================================

@inventory_bp.get("/categories")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_categories_route():
    categories = inventory_service.list_categories()
    return {"items": categories, "count": len(categories)}


@inventory_bp.post("/categories")
@require_auth
@require_permission("MANAGE_CATEGORIES")
def create_category_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=InventoryCategory, payload=payload, policy=CATEGORY_POLICY, partial=False)
        enforce_rules_category(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    category = inventory_service.create_category(patch=patch)
    return category.to_dict(item_count=0), 201


@inventory_bp.put("/categories/<int:category_id>")
@require_auth
@require_permission("MANAGE_CATEGORIES")
def update_category_route(category_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=InventoryCategory, payload=payload, policy=CATEGORY_POLICY, partial=True)
        enforce_rules_category(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        category = inventory_service.update_category(category_id, patch=patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404

    return category.to_dict(), 200


@inventory_bp.delete("/categories/<int:category_id>")
@require_auth
@require_permission("MANAGE_CATEGORIES")
def delete_category_route(category_id: int):
    """Delete an empty category (409 while it still owns items)."""
    try:
        inventory_service.delete_category(category_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return {"ok": True}, 200


# =============================================================================
# Items
# =============================================================================

@inventory_bp.get("/items")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_items_route():
    """
    List items ordered by name.

    Query params:
    - category_id: int (optional)
    """
    category_id = request.args.get("category_id", type=int)
    items = inventory_service.list_items(category_id=category_id)
    return {"items": [i.to_dict() for i in items], "count": len(items)}


@inventory_bp.get("/items/<int:item_id>")
@require_auth
@require_permission("VIEW_INVENTORY")
def get_item_route(item_id: int):
    """Item with its 10 most recent stock transactions."""
    try:
        return inventory_service.get_item_detail(item_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404


@inventory_bp.post("/items")
@require_auth
@require_permission("MANAGE_ITEMS")
def create_item_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=InventoryItem, payload=payload, policy=ITEM_CREATE_POLICY, partial=False)
        enforce_rules_item(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        item = inventory_service.create_item(patch=patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return item.to_dict(), 201


@inventory_bp.put("/items/<int:item_id>")
@require_auth
@require_permission("MANAGE_ITEMS")
def update_item_route(item_id: int):
    """Edit item master data. quantity is rejected; use /adjust."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=InventoryItem, payload=payload, policy=ITEM_UPDATE_POLICY, partial=True)
        enforce_rules_item(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        item = inventory_service.update_item(item_id, patch=patch)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return item.to_dict(), 200


@inventory_bp.delete("/items/<int:item_id>")
@require_auth
@require_permission("DELETE_ITEMS")
def delete_item_route(item_id: int):
    try:
        inventory_service.delete_item(item_id)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except ConflictError as e:
        return {"error": str(e)}, 409

    return {"ok": True}, 200


# =============================================================================
# Stock
# =============================================================================

@inventory_bp.post("/items/<int:item_id>/adjust")
@require_auth
@require_permission("ADJUST_STOCK")
def adjust_stock_route(item_id: int):
    """
    Record a stock movement.

    Request body:
    - type: "IN" | "OUT" | "ADJUSTMENT"
    - quantity: int (delta for IN/OUT, new on-hand for ADJUSTMENT)
    - notes: str (optional)
    """
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(
            model=StockTransaction,
            payload=payload,
            policy=STOCK_ADJUSTMENT_POLICY,
            partial=False,
        )
        enforce_rules_stock_adjustment(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    try:
        tx = inventory_service.adjust_stock(
            item_id=item_id,
            type=patch["type"],
            quantity=patch["quantity"],
            notes=patch.get("notes"),
            actor_user_id=g.current_user.id,
        )
    except NotFoundError as e:
        return {"error": str(e)}, 404
    except InvalidAdjustmentError as e:
        return {"error": str(e), "details": e.details}, 400
    except Exception:
        current_app.logger.exception("Failed to adjust stock for item %s", item_id)
        return {"error": "Internal server error"}, 500

    item = inventory_service.get_item(item_id)
    return {"transaction": tx.to_dict(), "item": item.to_dict()}, 201


@inventory_bp.get("/items/<int:item_id>/transactions")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_transactions_route(item_id: int):
    """
    Stock transactions for an item, newest first.

    Query params:
    - limit: int (default 50, max 500)
    """
    limit = min(max(request.args.get("limit", 50, type=int), 1), 500)
    try:
        txs = inventory_service.list_stock_transactions(item_id, limit=limit)
    except NotFoundError as e:
        return {"error": str(e)}, 404
    return {"items": [tx.to_dict() for tx in txs], "count": len(txs)}


@inventory_bp.get("/low-stock")
@require_auth
@require_permission("VIEW_INVENTORY")
def low_stock_route():
    """
    Non-rental items at or below their minimum stock.

    Query params:
    - limit: int (default LOW_STOCK_LIMIT)
    """
    default_limit = current_app.config.get("LOW_STOCK_LIMIT", 5)
    limit = max(request.args.get("limit", default_limit, type=int), 1)
    items = inventory_service.list_low_stock_items(limit=limit)
    return {"items": [i.to_dict() for i in items], "count": len(items)}
