"""
Booking lifecycle and cost model tests.
"""

from datetime import date

import pytest

from padelhub.models import Booking, Sale
from padelhub.services import booking_service, sales_service
from padelhub.validation import ConflictError, NotFoundError, ValidationError


def _patch(**overrides):
    patch = {
        "court_number": 1,
        "customer_name": "Marta Ruiz",
        "date": date(2026, 4, 2),
        "start_time": "10:00",
        "end_time": "11:30",
    }
    patch.update(overrides)
    return patch


class TestCostModel:

    def test_compute_total_example(self):
        # 50.00 + 1.5h * 30.00 + 12.00 = 107.00
        assert booking_service.compute_total_cents(5000, 1.5, 3000, [1200]) == 10700

    def test_extra_hours_round_half_up(self):
        # 0.5h * 0.01 = 0.005 -> 1 cent
        assert booking_service.extra_hours_cents(0.5, 1) == 1
        assert booking_service.extra_hours_cents(0.25, 1) == 0
        assert booking_service.extra_hours_cents(0, 3000) == 0

    def test_booking_totals(self, db_session, booking, items):
        booking_service.add_extra_hours(booking_id=booking.id, hours=1.5, price_per_hour_cents=3000)
        sales_service.add_sale(booking_id=booking.id, item_id=items["balls"].id, quantity=1)

        totals = booking_service.booking_totals(booking_service.get_booking(booking.id))
        assert totals == {
            "base_price_cents": 5000,
            "extra_hours_cents": 4500,
            "sales_cents": 1200,
            "total_cents": 10700,
        }

    def test_extra_hours_reprice_at_latest_rate(self, db_session, booking):
        booking_service.add_extra_hours(booking_id=booking.id, hours=1, price_per_hour_cents=2000)
        updated = booking_service.add_extra_hours(booking_id=booking.id, hours=0.5, price_per_hour_cents=3000)

        assert updated.extra_hours == 1.5
        assert updated.extra_hour_price_cents == 3000
        assert booking_service.booking_totals(updated)["extra_hours_cents"] == 4500


class TestExtraHours:

    @pytest.mark.parametrize("hours", [0, -1])
    def test_non_positive_hours_rejected(self, db_session, booking, hours):
        with pytest.raises(ValidationError):
            booking_service.add_extra_hours(booking_id=booking.id, hours=hours, price_per_hour_cents=1000)

    def test_unknown_booking(self, db_session):
        with pytest.raises(NotFoundError):
            booking_service.add_extra_hours(booking_id=999, hours=1, price_per_hour_cents=1000)

    def test_cancelled_booking_rejected(self, db_session, booking):
        booking_service.update_booking_status(booking.id, "CANCELLED")
        with pytest.raises(ConflictError):
            booking_service.add_extra_hours(booking_id=booking.id, hours=1, price_per_hour_cents=1000)


class TestCreateAndUpdate:

    def test_base_price_defaults_to_court(self, db_session, courts, admin_user):
        booking = booking_service.create_booking(patch=_patch(), actor_user_id=admin_user.id)
        assert booking.base_price_cents == 5000
        assert booking.status == "ACTIVE"
        assert booking.extra_hours == 0
        assert booking.created_by_user_id == admin_user.id

    def test_explicit_base_price_wins(self, db_session, courts, admin_user):
        booking = booking_service.create_booking(
            patch=_patch(base_price_cents=0), actor_user_id=admin_user.id
        )
        assert booking.base_price_cents == 0

    def test_unknown_court(self, db_session, courts, admin_user):
        with pytest.raises(NotFoundError):
            booking_service.create_booking(patch=_patch(court_number=9), actor_user_id=admin_user.id)

    def test_inactive_court(self, db_session, courts, admin_user):
        with pytest.raises(ConflictError):
            booking_service.create_booking(patch=_patch(court_number=2), actor_user_id=admin_user.id)

    def test_end_must_follow_start(self, db_session, courts, admin_user):
        with pytest.raises(ValidationError):
            booking_service.create_booking(
                patch=_patch(start_time="12:00", end_time="11:00"), actor_user_id=admin_user.id
            )

    def test_update_fields(self, db_session, booking):
        updated = booking_service.update_booking(booking.id, patch={"customer_name": "Ana L.", "notes": "Left-handed"})
        assert updated.customer_name == "Ana L."
        assert updated.notes == "Left-handed"


class TestStatus:

    def test_complete(self, db_session, booking):
        assert booking_service.update_booking_status(booking.id, "COMPLETED").status == "COMPLETED"

    def test_terminal_states_are_final(self, db_session, booking):
        booking_service.update_booking_status(booking.id, "CANCELLED")
        with pytest.raises(ConflictError):
            booking_service.update_booking_status(booking.id, "ACTIVE")
        with pytest.raises(ConflictError):
            booking_service.update_booking_status(booking.id, "COMPLETED")

    def test_same_status_is_noop(self, db_session, booking):
        booking_service.update_booking_status(booking.id, "COMPLETED")
        assert booking_service.update_booking_status(booking.id, "COMPLETED").status == "COMPLETED"


class TestListAndDelete:

    def test_list_orders_by_date_then_start(self, db_session, courts, admin_user):
        booking_service.create_booking(patch=_patch(date=date(2026, 4, 1), start_time="09:00", end_time="10:00"), actor_user_id=admin_user.id)
        booking_service.create_booking(patch=_patch(date=date(2026, 4, 2), start_time="08:00", end_time="09:00"), actor_user_id=admin_user.id)
        booking_service.create_booking(patch=_patch(date=date(2026, 4, 2), start_time="20:00", end_time="21:00"), actor_user_id=admin_user.id)

        listed = booking_service.list_bookings()
        assert [(b.date.isoformat(), b.start_time) for b in listed] == [
            ("2026-04-02", "20:00"),
            ("2026-04-02", "08:00"),
            ("2026-04-01", "09:00"),
        ]

    def test_list_filters(self, db_session, courts, admin_user):
        first = booking_service.create_booking(patch=_patch(date=date(2026, 4, 1)), actor_user_id=admin_user.id)
        booking_service.create_booking(patch=_patch(date=date(2026, 4, 5)), actor_user_id=admin_user.id)
        booking_service.update_booking_status(first.id, "COMPLETED")

        assert len(booking_service.list_bookings(status="COMPLETED")) == 1
        assert len(booking_service.list_bookings(date_from="2026-04-02")) == 1
        assert len(booking_service.list_bookings(date_from="2026-04-01", date_to="2026-04-05")) == 2

    def test_delete_restores_stock_and_removes_sales(self, db_session, booking, items):
        water, racket = items["water"], items["racket"]
        sales_service.add_sale(booking_id=booking.id, item_id=water.id, quantity=3)
        sales_service.add_sale(booking_id=booking.id, item_id=water.id, quantity=2)
        sales_service.add_sale(booking_id=booking.id, item_id=racket.id, quantity=1)
        booking_id = booking.id

        booking_service.delete_booking(booking_id)

        db_session.refresh(water)
        db_session.refresh(racket)
        assert water.quantity == 10
        assert racket.quantity == 3
        assert db_session.get(Booking, booking_id) is None
        assert db_session.query(Sale).count() == 0

    def test_delete_unknown(self, db_session):
        with pytest.raises(NotFoundError):
            booking_service.delete_booking(404)
