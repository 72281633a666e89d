# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

# padelhub/services/inventory_service.py

from __future__ import annotations

import logging

from sqlalchemy import func, update

from ..extensions import db
from ..models import InventoryCategory, InventoryItem, StockTransaction, Sale
from ..validation import ConflictError, NotFoundError, enforce_rules_stock_adjustment
from .concurrency import guarded_update, lock_for_update, run_with_retry
"""
PadelHub Inventory Invariants (authoritative)

Stock model:
- InventoryItem.quantity is a stored on-hand counter, never negative.
- For non-rental items it only moves through:
    * sales_service.add_sale / remove_sale (-q / +q, paired with a Sale row)
    * adjust_stock (IN +q, OUT -q, ADJUSTMENT = q, paired with a StockTransaction)
  Each pair is written in one DB transaction: both land or neither does.
- Decrements are conditional UPDATEs (quantity >= q in the WHERE clause), so
  two requests racing for the last units cannot both succeed.
- Item edits (update_item) never touch quantity; the opening quantity is
  only set at create time.

Audit:
- StockTransaction is append-only and records before/after snapshots.
"""

logger = logging.getLogger(__name__)

CATEGORY_MUTABLE_FIELDS = {"name", "type"}
ITEM_MUTABLE_FIELDS = {
    "name",
    "sku",
    "category_id",
    "cost_price_cents",
    "sell_price_cents",
    "min_stock",
    "is_rental",
}


class InvalidAdjustmentError(ValueError):
    """Raised when a stock adjustment would leave on-hand below zero."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _apply_patch(obj, patch: dict, allowed: set[str]) -> None:
    for k, v in patch.items():
        if k not in allowed:
            continue
        setattr(obj, k, v)


# =============================================================================
# Categories
# =============================================================================

def list_categories() -> list[dict]:
    """Categories ordered by name, each with its item count."""
    rows = (
        db.session.query(InventoryCategory, func.count(InventoryItem.id))
        .outerjoin(InventoryItem, InventoryItem.category_id == InventoryCategory.id)
        .group_by(InventoryCategory.id)
        .order_by(InventoryCategory.name.asc(), InventoryCategory.id.asc())
        .all()
    )
    return [category.to_dict(item_count=int(count)) for category, count in rows]


def get_category(category_id: int) -> InventoryCategory:
    category = db.session.get(InventoryCategory, category_id)
    if category is None:
        raise NotFoundError("Category not found")
    return category


def create_category(*, patch: dict) -> InventoryCategory:
    category = InventoryCategory()
    _apply_patch(category, patch, CATEGORY_MUTABLE_FIELDS)
    db.session.add(category)
    db.session.commit()
    return category


def update_category(category_id: int, *, patch: dict) -> InventoryCategory:
    category = get_category(category_id)
    _apply_patch(category, patch, CATEGORY_MUTABLE_FIELDS)
    db.session.commit()
    return category


def delete_category(category_id: int) -> None:
    """
    Delete an empty category.

    Raises ConflictError while the category still owns items; the
    category is left intact.
    """
    category = get_category(category_id)

    item_count = db.session.query(InventoryItem).filter_by(category_id=category.id).count()
    if item_count > 0:
        raise ConflictError(
            f"Cannot delete category with {item_count} items. Move or delete items first."
        )

    db.session.delete(category)
    db.session.commit()


# =============================================================================
# Items
# =============================================================================

def list_items(category_id: int | None = None) -> list[InventoryItem]:
    q = db.session.query(InventoryItem)
    if category_id is not None:
        q = q.filter(InventoryItem.category_id == category_id)
    return q.order_by(InventoryItem.name.asc(), InventoryItem.id.asc()).all()


def get_item(item_id: int, *, lock: bool = False) -> InventoryItem:
    query = db.session.query(InventoryItem).filter_by(id=item_id)
    if lock:
        query = lock_for_update(query)
    item = query.first()
    if item is None:
        raise NotFoundError("Item not found")
    return item


def _ensure_sku_available(sku: str, *, exclude_item_id: int | None = None) -> None:
    q = db.session.query(InventoryItem.id).filter(InventoryItem.sku == sku)
    if exclude_item_id is not None:
        q = q.filter(InventoryItem.id != exclude_item_id)
    if q.first() is not None:
        raise ConflictError("An item with this SKU already exists")


def create_item(*, patch: dict) -> InventoryItem:
    """
    Create an item with its opening stock.

    Raises NotFoundError for an unknown category and ConflictError for a
    duplicate SKU.
    """
    get_category(patch["category_id"])
    _ensure_sku_available(patch["sku"])

    item = InventoryItem(quantity=patch.get("quantity", 0))
    _apply_patch(item, patch, ITEM_MUTABLE_FIELDS)

    db.session.add(item)
    db.session.commit()
    logger.info("Created inventory item sku=%s qty=%s", item.sku, item.quantity)
    return item


def update_item(item_id: int, *, patch: dict) -> InventoryItem:
    """Edit item master data. quantity is not editable here; use adjust_stock."""
    item = get_item(item_id)

    if "category_id" in patch:
        get_category(patch["category_id"])
    if "sku" in patch and patch["sku"] != item.sku:
        _ensure_sku_available(patch["sku"], exclude_item_id=item.id)

    _apply_patch(item, patch, ITEM_MUTABLE_FIELDS)
    db.session.commit()
    return item


def delete_item(item_id: int) -> None:
    """
    Delete an item and its stock history.

    Items referenced by sales cannot be deleted (revenue history would lose
    its line items); that raises ConflictError.
    """
    item = get_item(item_id)

    sale_count = db.session.query(Sale).filter_by(inventory_item_id=item.id).count()
    if sale_count > 0:
        raise ConflictError(
            f"Cannot delete item with {sale_count} recorded sales."
        )

    db.session.delete(item)
    db.session.commit()


def list_stock_transactions(item_id: int, *, limit: int = 50) -> list[StockTransaction]:
    get_item(item_id)
    return (
        db.session.query(StockTransaction)
        .filter_by(inventory_item_id=item_id)
        .order_by(StockTransaction.created_at.desc(), StockTransaction.id.desc())
        .limit(limit)
        .all()
    )


def get_item_detail(item_id: int, *, history: int = 10) -> dict:
    """Item plus its most recent stock transactions."""
    item = get_item(item_id)
    data = item.to_dict()
    data["stock_transactions"] = [
        tx.to_dict() for tx in list_stock_transactions(item.id, limit=history)
    ]
    return data


def list_low_stock_items(limit: int = 5) -> list[InventoryItem]:
    """Non-rental items at or below their reorder threshold, emptiest first."""
    return (
        db.session.query(InventoryItem)
        .filter(
            InventoryItem.is_rental.is_(False),
            InventoryItem.quantity <= InventoryItem.min_stock,
        )
        .order_by(InventoryItem.quantity.asc(), InventoryItem.name.asc())
        .limit(limit)
        .all()
    )


# =============================================================================
# Stock adjustment
# =============================================================================

def adjust_stock(
    *,
    item_id: int,
    type: str,
    quantity: int,
    actor_user_id: int,
    notes: str | None = None,
) -> StockTransaction:
    """
    Apply a manual stock change and append its audit row.

    - IN:         quantity_after = current + quantity
    - OUT:        quantity_after = current - quantity; InvalidAdjustmentError
                  if that would go below zero (nothing is written)
    - ADJUSTMENT: quantity_after = quantity (absolute set)

    The item update and the StockTransaction insert commit together.
    """
    enforce_rules_stock_adjustment({"type": type, "quantity": quantity})

    def _op():
        item = get_item(item_id, lock=True)
        before = item.quantity

        if type == "IN":
            stmt = (
                update(InventoryItem)
                .where(InventoryItem.id == item.id)
                .values(quantity=InventoryItem.quantity + quantity)
            )
        elif type == "OUT":
            stmt = (
                update(InventoryItem)
                .where(InventoryItem.id == item.id, InventoryItem.quantity >= quantity)
                .values(quantity=InventoryItem.quantity - quantity)
            )
        elif type == "ADJUSTMENT":
            stmt = (
                update(InventoryItem)
                .where(InventoryItem.id == item.id)
                .values(quantity=quantity)
            )
        else:
            raise ValueError(f"unknown stock transaction type {type!r}")

        if not guarded_update(stmt):
            db.session.rollback()
            raise InvalidAdjustmentError(
                "Cannot reduce stock below 0",
                details={"item_id": item_id, "on_hand": before, "requested_quantity": quantity},
            )

        db.session.refresh(item)

        tx = StockTransaction(
            inventory_item_id=item.id,
            created_by_user_id=actor_user_id,
            type=type,
            quantity=quantity,
            quantity_before=before,
            quantity_after=item.quantity,
            notes=notes,
        )
        db.session.add(tx)
        db.session.commit()

        logger.info(
            "Stock %s on item %s by user %s: %s -> %s",
            type, item.id, actor_user_id, tx.quantity_before, tx.quantity_after,
        )
        return tx

    return run_with_retry(_op)
