from __future__ import annotations

from ..extensions import db
from padelhub.time_utils import to_utc_z


class Sale(db.Model):
    """
    An item sold (or rented) against a booking.

    unit_price_cents and is_rental are snapshots taken at sale time: later
    price edits or rental-flag flips on the item do not change what was
    charged, nor how a removal restores stock.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.CheckConstraint("quantity >= 1", name="ck_sales_quantity_positive"),
        db.CheckConstraint("unit_price_cents >= 0", name="ck_sales_unit_price_nonneg"),
        db.Index("ix_sales_created_at", "created_at"),
        db.Index("ix_sales_item_created", "inventory_item_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    booking_id = db.Column(
        db.Integer,
        db.ForeignKey("bookings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # No cascade: items with sales history cannot be deleted
    inventory_item_id = db.Column(db.Integer, db.ForeignKey("inventory_items.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)
    is_rental = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    inventory_item = db.relationship("InventoryItem", backref=db.backref("sales", lazy="dynamic"))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "booking_id": self.booking_id,
            "inventory_item_id": self.inventory_item_id,
            "item_name": self.inventory_item.name if self.inventory_item else None,
            "item_sku": self.inventory_item.sku if self.inventory_item else None,
            "quantity": self.quantity,
            "unit_price_cents": self.unit_price_cents,
            "total_cents": self.total_cents,
            "is_rental": self.is_rental,
            "created_at": to_utc_z(self.created_at),
        }
