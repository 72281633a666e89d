# Overview: Service-layer operations for bookings; encapsulates business logic and database work.

"""
Booking lifecycle and cost accrual.

Cost model:
    total = base_price + extra_hours * extra_hour_price + sum(sale totals)

The extra-hours part is rounded half-up to whole cents. extra_hour_price is
a single rate that the latest add_extra_hours call overwrites, so hours
added earlier are re-priced at the newest rate.

Lifecycle: ACTIVE -> COMPLETED | CANCELLED. Terminal bookings cannot change
status again and take no new sales or extra hours. Cancelling does not
reverse sales; deleting the booking does.
"""

from __future__ import annotations

import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from ..extensions import db
from ..models import Booking, TERMINAL_BOOKING_STATUSES
from ..time_utils import parse_iso_date
from ..validation import ConflictError, NotFoundError, ValidationError
from .concurrency import lock_for_update, run_with_retry
from .court_service import get_court_by_number
from .sales_service import restore_stock_for_sales

logger = logging.getLogger(__name__)

BOOKING_MUTABLE_FIELDS = {
    "court_number",
    "customer_name",
    "customer_phone",
    "date",
    "start_time",
    "end_time",
    "base_price_cents",
    "notes",
}


def apply_booking_patch(booking: Booking, patch: dict) -> None:
    for k, v in patch.items():
        if k not in BOOKING_MUTABLE_FIELDS:
            continue
        setattr(booking, k, v)


def extra_hours_cents(extra_hours: float, extra_hour_price_cents: int) -> int:
    amount = Decimal(str(extra_hours or 0)) * Decimal(extra_hour_price_cents or 0)
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_total_cents(
    base_price_cents: int,
    extra_hours: float,
    extra_hour_price_cents: int,
    sale_totals_cents: Iterable[int] = (),
) -> int:
    return (
        (base_price_cents or 0)
        + extra_hours_cents(extra_hours, extra_hour_price_cents)
        + sum(sale_totals_cents)
    )


def booking_totals(booking: Booking) -> dict:
    sales_cents = sum(s.total_cents for s in booking.sales)
    extra_cents = extra_hours_cents(booking.extra_hours, booking.extra_hour_price_cents)
    return {
        "base_price_cents": booking.base_price_cents,
        "extra_hours_cents": extra_cents,
        "sales_cents": sales_cents,
        "total_cents": booking.base_price_cents + extra_cents + sales_cents,
    }


def booking_detail(booking: Booking) -> dict:
    """Booking with its sales and cost breakdown."""
    data = booking.to_dict()
    data["sales"] = [s.to_dict() for s in booking.sales]
    data["totals"] = booking_totals(booking)
    return data


def _check_slot(booking: Booking) -> None:
    if booking.start_time and booking.end_time and booking.end_time <= booking.start_time:
        raise ValidationError("end_time must be after start_time")


def _require_active_court(court_number: int):
    court = get_court_by_number(court_number)
    if court is None:
        raise NotFoundError(f"Court {court_number} not found")
    if not court.is_active:
        raise ConflictError(f"Court {court_number} is not active")
    return court


def list_bookings(status: str | None = None, date_from=None, date_to=None) -> list[Booking]:
    """Bookings newest slot first, optionally filtered by status and an inclusive date range."""
    q = db.session.query(Booking)
    if status:
        q = q.filter(Booking.status == status)

    start_day = parse_iso_date(date_from)
    end_day = parse_iso_date(date_to)
    if start_day:
        q = q.filter(Booking.date >= start_day)
    if end_day:
        q = q.filter(Booking.date <= end_day)

    return q.order_by(Booking.date.desc(), Booking.start_time.desc(), Booking.id.desc()).all()


def get_booking(booking_id: int, *, lock: bool = False) -> Booking:
    query = db.session.query(Booking).filter_by(id=booking_id)
    if lock:
        query = lock_for_update(query)
    booking = query.first()
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


def create_booking(*, patch: dict, actor_user_id: int) -> Booking:
    """
    Book a slot on an active court.

    base_price_cents falls back to the court's base price when omitted.
    """
    court = _require_active_court(patch["court_number"])

    booking = Booking(
        status="ACTIVE",
        extra_hours=0,
        extra_hour_price_cents=0,
        created_by_user_id=actor_user_id,
    )
    apply_booking_patch(booking, patch)
    if patch.get("base_price_cents") is None:
        booking.base_price_cents = court.base_price_cents
    _check_slot(booking)

    db.session.add(booking)
    db.session.commit()
    logger.info(
        "Booking %s created on court %s for %s by user %s",
        booking.id, booking.court_number, booking.date, actor_user_id,
    )
    return booking


def update_booking(booking_id: int, *, patch: dict) -> Booking:
    booking = get_booking(booking_id)

    if "court_number" in patch and patch["court_number"] != booking.court_number:
        _require_active_court(patch["court_number"])

    apply_booking_patch(booking, patch)
    _check_slot(booking)
    db.session.commit()
    return booking


def update_booking_status(booking_id: int, status: str) -> Booking:
    """
    Move a booking along its lifecycle.

    Same-status updates are no-ops. Leaving COMPLETED or CANCELLED raises
    ConflictError.
    """
    def _op():
        booking = get_booking(booking_id, lock=True)
        if booking.status == status:
            return booking
        if booking.status in TERMINAL_BOOKING_STATUSES:
            logger.info("Refused status change of booking %s: %s -> %s", booking.id, booking.status, status)
            raise ConflictError(f"Booking is already {booking.status}")

        booking.status = status
        db.session.commit()
        return booking

    return run_with_retry(_op)


def delete_booking(booking_id: int) -> None:
    """
    Delete a booking and its sales, putting non-rental units back in stock.

    The stock restores and the cascade delete commit together.
    """
    def _op():
        booking = get_booking(booking_id, lock=True)
        sales = list(booking.sales)
        restore_stock_for_sales(sales)

        db.session.delete(booking)
        db.session.commit()
        logger.info("Booking %s deleted with %d sales", booking_id, len(sales))

    run_with_retry(_op)


def add_extra_hours(
    *,
    booking_id: int,
    hours: float,
    price_per_hour_cents: int,
    actor_user_id: int | None = None,
) -> Booking:
    """
    Add hours to an ACTIVE booking.

    extra_hours accumulates; extra_hour_price_cents is replaced by
    price_per_hour_cents.
    """
    if hours is None or hours <= 0:
        raise ValidationError("Hours must be greater than 0")

    def _op():
        booking = get_booking(booking_id, lock=True)
        if not booking.is_active:
            raise ConflictError(f"Cannot add extra hours to a {booking.status} booking")

        booking.extra_hours = (booking.extra_hours or 0) + hours
        booking.extra_hour_price_cents = price_per_hour_cents
        db.session.commit()

        logger.info(
            "Booking %s: +%s extra hours at %s cents/h by user %s",
            booking.id, hours, price_per_hour_cents, actor_user_id,
        )
        return booking

    return run_with_retry(_op)
