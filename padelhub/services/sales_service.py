"""
Sales Service - items sold or rented against a booking

A sale and its stock movement are one unit of work: the Sale row and the
InventoryItem decrement commit together or not at all. Rentals are charged
but never move stock.
"""

import logging

from sqlalchemy import func, update

from ..extensions import db
from ..models import Booking, InventoryItem, Sale
from ..validation import ConflictError, NotFoundError, enforce_rules_sale
from .concurrency import guarded_update, lock_for_update, run_with_retry

logger = logging.getLogger(__name__)


class InsufficientStockError(ConflictError):
    """Raised when a sale asks for more units than are on hand."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


def _get_active_booking(booking_id: int) -> Booking:
    booking = lock_for_update(db.session.query(Booking).filter_by(id=booking_id)).first()
    if not booking:
        raise NotFoundError("Booking not found")
    if not booking.is_active:
        raise ConflictError(f"Cannot add sales to a {booking.status} booking")
    return booking


def add_sale(*, booking_id: int, item_id: int, quantity: int) -> Sale:
    """
    Charge an item to an ACTIVE booking.

    unit price is the item's current sell price; is_rental is copied from
    the item. Non-rental sales decrement stock with a guarded UPDATE, so
    InsufficientStockError is raised (and nothing written) when fewer than
    quantity units remain.
    """
    enforce_rules_sale({"quantity": quantity})

    def _op():
        booking = _get_active_booking(booking_id)

        item = db.session.query(InventoryItem).filter_by(id=item_id).first()
        if not item:
            raise NotFoundError("Item not found")

        if not item.is_rental:
            ok = guarded_update(
                update(InventoryItem)
                .where(InventoryItem.id == item.id, InventoryItem.quantity >= quantity)
                .values(quantity=InventoryItem.quantity - quantity)
            )
            if not ok:
                on_hand = item.quantity
                db.session.rollback()
                raise InsufficientStockError(
                    f"Insufficient stock. Available: {on_hand}",
                    details={
                        "item_id": item_id,
                        "requested_quantity": quantity,
                        "on_hand": on_hand,
                    },
                )
            db.session.refresh(item)

        sale = Sale(
            booking_id=booking.id,
            inventory_item_id=item.id,
            quantity=quantity,
            unit_price_cents=item.sell_price_cents,
            total_cents=item.sell_price_cents * quantity,
            is_rental=item.is_rental,
        )
        db.session.add(sale)
        db.session.commit()

        logger.info(
            "Sale %s on booking %s: item=%s qty=%s total=%s rental=%s",
            sale.id, booking.id, item.id, quantity, sale.total_cents, sale.is_rental,
        )
        return sale

    return run_with_retry(_op)


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found")
    return sale


def remove_sale(*, sale_id: int, booking_id: int | None = None) -> None:
    """
    Delete a sale and give back its stock.

    Stock restore uses the sale's own is_rental snapshot, not the item's
    current flag. When booking_id is given the sale must belong to it.
    """
    def _op():
        sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
        if not sale or (booking_id is not None and sale.booking_id != booking_id):
            raise NotFoundError("Sale not found")

        owner_id = sale.booking_id
        restored = not sale.is_rental
        if restored:
            guarded_update(
                update(InventoryItem)
                .where(InventoryItem.id == sale.inventory_item_id)
                .values(quantity=InventoryItem.quantity + sale.quantity)
            )

        db.session.delete(sale)
        db.session.commit()
        logger.info("Removed sale %s from booking %s (restored=%s)", sale_id, owner_id, restored)

    run_with_retry(_op)


def restore_stock_for_sales(sales) -> None:
    """Put back the units of every non-rental sale given. Does not commit."""
    totals: dict[int, int] = {}
    for sale in sales:
        if sale.is_rental:
            continue
        totals[sale.inventory_item_id] = totals.get(sale.inventory_item_id, 0) + sale.quantity

    for item_id, qty in totals.items():
        guarded_update(
            update(InventoryItem)
            .where(InventoryItem.id == item_id)
            .values(quantity=InventoryItem.quantity + qty)
        )


def sale_day():
    """Calendar day of Sale.created_at, whatever the stored timestamp precision."""
    return func.date(Sale.created_at, type_=db.Date)


def apply_day_window(query, date_from=None, date_to=None):
    """Limit a Sale query to an inclusive range of calendar days."""
    if date_from is not None:
        query = query.filter(sale_day() >= date_from)
    if date_to is not None:
        query = query.filter(sale_day() <= date_to)
    return query


def list_sales(
    *,
    booking_id: int | None = None,
    date_from=None,
    date_to=None,
    limit: int = 100,
) -> list[Sale]:
    """Sales newest first, optionally scoped to a booking or a range of days."""
    q = db.session.query(Sale)
    if booking_id is not None:
        q = q.filter(Sale.booking_id == booking_id)
    q = apply_day_window(q, date_from, date_to)
    return q.order_by(Sale.created_at.desc(), Sale.id.desc()).limit(limit).all()


def sale_history_row(sale: Sale) -> dict:
    """Sale plus the booking context shown in the sales history."""
    data = sale.to_dict()
    booking = sale.booking
    data["customer_name"] = booking.customer_name if booking else None
    data["court_number"] = booking.court_number if booking else None
    data["booking_date"] = booking.date.isoformat() if booking and booking.date else None
    return data
