from __future__ import annotations

from ..extensions import db
from padelhub.time_utils import to_utc_z

BOOKING_STATUSES = ("ACTIVE", "COMPLETED", "CANCELLED")
TERMINAL_BOOKING_STATUSES = ("COMPLETED", "CANCELLED")


class Booking(db.Model):
    """
    A customer's court slot plus everything charged to it.

    Lifecycle: ACTIVE -> COMPLETED | CANCELLED. Only ACTIVE bookings take
    new sales or extra hours.

    Extra hours: extra_hours accumulates, extra_hour_price_cents is a single
    rate overwritten by the latest addition. The extra-hours charge is
    always extra_hours * current rate, so earlier hours re-price when the
    rate changes.
    """
    __tablename__ = "bookings"
    __table_args__ = (
        db.CheckConstraint(
            "status IN ('ACTIVE', 'COMPLETED', 'CANCELLED')",
            name="ck_bookings_status",
        ),
        db.CheckConstraint("base_price_cents >= 0", name="ck_bookings_base_price_nonneg"),
        db.CheckConstraint("extra_hours >= 0", name="ck_bookings_extra_hours_nonneg"),
        db.CheckConstraint("extra_hour_price_cents >= 0", name="ck_bookings_extra_price_nonneg"),
        db.Index("ix_bookings_date_start", "date", "start_time"),
        db.Index("ix_bookings_status_date", "status", "date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    court_number = db.Column(
        db.Integer,
        db.ForeignKey("courts.court_number", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )

    customer_name = db.Column(db.String(120), nullable=False)
    customer_phone = db.Column(db.String(40), nullable=True)

    date = db.Column(db.Date, nullable=False)
    # "HH:MM", 24h
    start_time = db.Column(db.String(5), nullable=False)
    end_time = db.Column(db.String(5), nullable=False)

    base_price_cents = db.Column(db.Integer, nullable=False, default=0)
    extra_hours = db.Column(db.Float, nullable=False, default=0)
    extra_hour_price_cents = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="ACTIVE", index=True)
    notes = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    created_by = db.relationship("User", backref=db.backref("bookings", lazy=True))
    sales = db.relationship(
        "Sale",
        backref=db.backref("booking", lazy=True),
        lazy=True,
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Sale.id.desc()",
    )

    @property
    def is_active(self) -> bool:
        return self.status == "ACTIVE"

    def __repr__(self) -> str:
        return (
            f"<Booking id={self.id} court={self.court_number} date={self.date} "
            f"{self.start_time}-{self.end_time} status={self.status}>"
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "court_number": self.court_number,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "date": self.date.isoformat() if self.date else None,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "base_price_cents": self.base_price_cents,
            "extra_hours": self.extra_hours,
            "extra_hour_price_cents": self.extra_hour_price_cents,
            "status": self.status,
            "notes": self.notes,
            "created_by_user_id": self.created_by_user_id,
            "created_by": self.created_by.name if self.created_by else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
