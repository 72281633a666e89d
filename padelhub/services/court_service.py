# padelhub/services/court_service.py
"""
Courts Service

Courts are addressed by id in the API, but bookings point at them by
court_number, so renumbering a court carries its bookings along (ON UPDATE
CASCADE) and a court with bookings cannot be deleted.
"""
from __future__ import annotations

import logging

from sqlalchemy import func

from ..extensions import db
from ..models import Booking, Court
from ..validation import ConflictError, NotFoundError

logger = logging.getLogger(__name__)

COURT_MUTABLE_FIELDS = {"name", "court_number", "base_price_cents", "description", "is_active"}


def apply_court_patch(court: Court, patch: dict) -> None:
    for k, v in patch.items():
        if k not in COURT_MUTABLE_FIELDS:
            continue
        setattr(court, k, v)


def _booking_counts(court_numbers: list[int]) -> dict[int, int]:
    if not court_numbers:
        return {}
    rows = (
        db.session.query(Booking.court_number, func.count(Booking.id))
        .filter(Booking.court_number.in_(court_numbers))
        .group_by(Booking.court_number)
        .all()
    )
    return {number: int(count) for number, count in rows}


def list_courts(active_only: bool = False) -> dict:
    """
    Courts ordered by court_number, each with its booking count.

    Returns:
        Dict with 'items' and 'count'.
    """
    query = db.session.query(Court)
    if active_only:
        query = query.filter(Court.is_active.is_(True))
    courts = query.order_by(Court.court_number.asc()).all()

    counts = _booking_counts([c.court_number for c in courts])
    return {
        "items": [c.to_dict(booking_count=counts.get(c.court_number, 0)) for c in courts],
        "count": len(courts),
    }


def get_court(court_id: int) -> Court:
    court = db.session.get(Court, court_id)
    if court is None:
        raise NotFoundError("Court not found")
    return court


def get_court_by_number(court_number: int) -> Court | None:
    return db.session.query(Court).filter_by(court_number=court_number).first()


def _ensure_number_available(court_number: int, *, exclude_court_id: int | None = None) -> None:
    existing = get_court_by_number(court_number)
    if existing is not None and existing.id != exclude_court_id:
        raise ConflictError(f"Court number {court_number} is already in use")


def create_court(*, patch: dict) -> Court:
    """
    Create a court from a validated patch dict.

    Raises ConflictError if court_number is taken.
    """
    _ensure_number_available(patch["court_number"])

    court = Court()
    apply_court_patch(court, patch)
    db.session.add(court)
    db.session.commit()
    logger.info("Created court %s (number %s)", court.id, court.court_number)
    return court


def update_court(court_id: int, *, patch: dict) -> Court:
    court = get_court(court_id)

    if "court_number" in patch and patch["court_number"] != court.court_number:
        _ensure_number_available(patch["court_number"], exclude_court_id=court.id)

    apply_court_patch(court, patch)
    db.session.commit()
    return court


def delete_court(court_id: int) -> None:
    """Delete a court. Raises ConflictError while it still has bookings."""
    court = get_court(court_id)

    booking_count = court.bookings.count()
    if booking_count > 0:
        raise ConflictError(
            f"Cannot delete court with {booking_count} bookings. Deactivate it instead."
        )

    db.session.delete(court)
    db.session.commit()


def toggle_court_status(court_id: int) -> Court:
    """Flip is_active. Inactive courts take no new bookings."""
    court = get_court(court_id)
    court.is_active = not court.is_active
    db.session.commit()
    return court
