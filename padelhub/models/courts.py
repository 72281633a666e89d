from __future__ import annotations

from ..extensions import db
from padelhub.time_utils import to_utc_z


class Court(db.Model):
    """
    A bookable padel court.

    Bookings reference courts by court_number (the number painted on the
    court), not by id, so court_number is unique and updates cascade.
    """
    __tablename__ = "courts"
    __table_args__ = (
        db.UniqueConstraint("court_number", name="uq_courts_court_number"),
        db.CheckConstraint("court_number >= 1", name="ck_courts_court_number_positive"),
        db.CheckConstraint("base_price_cents >= 0", name="ck_courts_base_price_nonneg"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    court_number = db.Column(db.Integer, nullable=False)

    # Default slot price offered when a booking is created on this court
    base_price_cents = db.Column(db.Integer, nullable=False, default=0)

    description = db.Column(db.Text, nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    bookings = db.relationship(
        "Booking",
        backref=db.backref("court", lazy=True),
        lazy="dynamic",
        primaryjoin="Court.court_number == Booking.court_number",
        foreign_keys="Booking.court_number",
        passive_deletes="all",
    )

    def __repr__(self) -> str:
        return f"<Court id={self.id} number={self.court_number} name={self.name!r}>"

    def to_dict(self, booking_count: int | None = None) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "court_number": self.court_number,
            "base_price_cents": self.base_price_cents,
            "description": self.description,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
        if booking_count is not None:
            data["booking_count"] = booking_count
        return data
