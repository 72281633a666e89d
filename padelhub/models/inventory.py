from __future__ import annotations

from ..extensions import db
from padelhub.time_utils import to_utc_z

CATEGORY_TYPES = ("BEVERAGE_SNACK", "EQUIPMENT_RENTAL", "PRO_SHOP")
STOCK_TRANSACTION_TYPES = ("IN", "OUT", "ADJUSTMENT")


class InventoryCategory(db.Model):
    """Grouping for inventory items (drinks and snacks, rentals, pro shop)."""
    __tablename__ = "inventory_categories"
    __table_args__ = (
        db.CheckConstraint(
            "type IN ('BEVERAGE_SNACK', 'EQUIPMENT_RENTAL', 'PRO_SHOP')",
            name="ck_inventory_categories_type",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    type = db.Column(db.String(32), nullable=False, index=True)

    items = db.relationship(
        "InventoryItem",
        backref=db.backref("category", lazy="joined"),
        lazy=True,
        # Items are never removed through their category; the FK refuses it
        passive_deletes="all",
    )

    def __repr__(self) -> str:
        return f"<InventoryCategory id={self.id} name={self.name!r} type={self.type}>"

    def to_dict(self, item_count: int | None = None) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
        }
        if item_count is not None:
            data["item_count"] = item_count
        return data


class InventoryItem(db.Model):
    """
    Sellable or rentable stock item.

    STOCK DESIGN DECISION:
    quantity is a stored, mutable on-hand counter, not derived from the transaction history.
    It only moves through sales_service (sale add/remove) and
    inventory_service.adjust_stock, each of which writes its companion row
    (Sale or StockTransaction) in the same DB transaction.

    Rental items (is_rental=True) are tracked for revenue only: selling
    them never touches quantity.
    """
    __tablename__ = "inventory_items"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_inventory_items_sku"),
        db.CheckConstraint("quantity >= 0", name="ck_inventory_items_quantity_nonneg"),
        db.CheckConstraint("cost_price_cents >= 0", name="ck_inventory_items_cost_nonneg"),
        db.CheckConstraint("sell_price_cents >= 0", name="ck_inventory_items_sell_nonneg"),
        db.CheckConstraint("min_stock >= 0", name="ck_inventory_items_min_stock_nonneg"),
        db.Index("ix_inventory_items_category_name", "category_id", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    category_id = db.Column(
        db.Integer,
        db.ForeignKey("inventory_categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    sku = db.Column(db.String(64), nullable=False)
    name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False, default=0)

    # Authoritative storage in cents (frontend may only format for display)
    cost_price_cents = db.Column(db.Integer, nullable=False, default=0)
    sell_price_cents = db.Column(db.Integer, nullable=False, default=0)

    # Reorder threshold: quantity <= min_stock is "low stock"
    min_stock = db.Column(db.Integer, nullable=False, default=5)

    is_rental = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    stock_transactions = db.relationship(
        "StockTransaction",
        backref=db.backref("item", lazy=True),
        lazy="dynamic",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_low_stock(self) -> bool:
        return not self.is_rental and self.quantity <= self.min_stock

    def __repr__(self) -> str:
        return f"<InventoryItem id={self.id} sku={self.sku!r} qty={self.quantity}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category_id": self.category_id,
            "category": self.category.to_dict() if self.category else None,
            "sku": self.sku,
            "name": self.name,
            "quantity": self.quantity,
            "cost_price_cents": self.cost_price_cents,
            "sell_price_cents": self.sell_price_cents,
            "min_stock": self.min_stock,
            "is_rental": self.is_rental,
            "is_low_stock": self.is_low_stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockTransaction(db.Model):
    """
    Append-only audit row for a manual stock change.

    quantity is the operator's input: a delta for IN/OUT, the absolute new
    on-hand value for ADJUSTMENT. quantity_before/quantity_after snapshot
    the counter around the change.
    """
    __tablename__ = "stock_transactions"
    __table_args__ = (
        db.CheckConstraint("type IN ('IN', 'OUT', 'ADJUSTMENT')", name="ck_stock_transactions_type"),
        db.Index("ix_stock_transactions_item_created", "inventory_item_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    inventory_item_id = db.Column(
        db.Integer,
        db.ForeignKey("inventory_items.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    type = db.Column(db.String(16), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    quantity_before = db.Column(db.Integer, nullable=False)
    quantity_after = db.Column(db.Integer, nullable=False)

    notes = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    created_by = db.relationship("User", backref=db.backref("stock_transactions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "inventory_item_id": self.inventory_item_id,
            "type": self.type,
            "quantity": self.quantity,
            "quantity_before": self.quantity_before,
            "quantity_after": self.quantity_after,
            "notes": self.notes,
            "created_by_user_id": self.created_by_user_id,
            "created_by": self.created_by.name if self.created_by else None,
            "created_at": to_utc_z(self.created_at),
        }
