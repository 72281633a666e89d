"""
User administration, sessions and court administration tests.
"""

from datetime import timedelta

import pytest

from padelhub.models import Booking, SessionToken
from padelhub.services import auth_service, court_service, session_service
from padelhub.services.auth_service import PasswordValidationError
from padelhub.time_utils import utcnow
from padelhub.validation import ConflictError, NotFoundError, ValidationError


class TestUsers:

    def test_create_hashes_password(self, db_session):
        user = auth_service.create_user(email="New@PadelHub.test", name="New", password="secret1")
        assert user.email == "new@padelhub.test"
        assert user.role == "STAFF"
        assert user.password_hash != "secret1"
        assert auth_service.verify_password("secret1", user.password_hash)

    def test_short_password_rejected(self, db_session):
        with pytest.raises(PasswordValidationError):
            auth_service.create_user(email="a@b.co", name="Short", password="12345")
        assert issubclass(PasswordValidationError, ValidationError)

    def test_duplicate_email_conflicts(self, db_session, staff_user):
        with pytest.raises(ConflictError):
            auth_service.create_user(email=staff_user.email, name="Dup", password="secret1")

    def test_authenticate(self, db_session, staff_user):
        assert auth_service.authenticate("STAFF@padelhub.test", "staff-pass").id == staff_user.id
        assert auth_service.authenticate(staff_user.email, "wrong-pass") is None
        assert auth_service.authenticate("nobody@padelhub.test", "staff-pass") is None

    def test_update_without_password_keeps_it(self, db_session, staff_user):
        old_hash = staff_user.password_hash
        updated = auth_service.update_user(staff_user.id, patch={"name": "Desk"})
        assert updated.name == "Desk"
        assert updated.password_hash == old_hash

    def test_update_with_password(self, db_session, staff_user):
        auth_service.update_user(staff_user.id, patch={}, password="new-secret")
        assert auth_service.authenticate(staff_user.email, "new-secret") is not None

    def test_cannot_demote_last_admin(self, db_session, admin_user):
        with pytest.raises(ConflictError):
            auth_service.update_user(admin_user.id, patch={"role": "STAFF"})

    def test_can_demote_when_another_admin_exists(self, db_session, admin_user, staff_user):
        auth_service.update_user(staff_user.id, patch={"role": "ADMIN"})
        assert auth_service.update_user(admin_user.id, patch={"role": "STAFF"}).role == "STAFF"

    def test_cannot_delete_last_admin(self, db_session, admin_user):
        with pytest.raises(ConflictError):
            auth_service.delete_user(admin_user.id)

    def test_cannot_delete_user_with_bookings(self, db_session, booking, admin_user, staff_user):
        # booking fixture is attributed to admin_user; make staff the sole other admin
        auth_service.update_user(staff_user.id, patch={"role": "ADMIN"})
        with pytest.raises(ConflictError):
            auth_service.delete_user(admin_user.id)

    def test_delete_user(self, db_session, admin_user, staff_user):
        user_id = staff_user.id
        auth_service.delete_user(user_id, actor_user_id=admin_user.id)
        with pytest.raises(NotFoundError):
            auth_service.get_user(user_id)

    def test_cannot_delete_self(self, db_session, admin_user, staff_user):
        auth_service.update_user(staff_user.id, patch={"role": "ADMIN"})
        with pytest.raises(ConflictError):
            auth_service.delete_user(admin_user.id, actor_user_id=admin_user.id)


class TestSessions:

    def test_roundtrip_and_revoke(self, db_session, staff_user):
        session, token = session_service.create_session(staff_user.id)
        assert session.token_hash != token

        context = session_service.validate_session(token)
        assert context.user.id == staff_user.id

        assert session_service.revoke_session(token) is True
        assert session_service.validate_session(token) is None

    def test_idle_session_is_revoked(self, db_session, staff_user):
        session, token = session_service.create_session(staff_user.id)
        session.last_used_at = utcnow() - timedelta(hours=3)
        db_session.commit()

        assert session_service.validate_session(token) is None
        db_session.refresh(session)
        assert session.is_revoked is True
        assert session.revoked_reason == "Idle timeout"

    def test_cleanup_removes_old_expired(self, db_session, staff_user):
        session, _ = session_service.create_session(staff_user.id)
        session.created_at = utcnow() - timedelta(days=40)
        session.expires_at = utcnow() - timedelta(days=39)
        db_session.commit()
        session_service.create_session(staff_user.id)

        assert session_service.cleanup_expired_sessions() == 1
        assert db_session.query(SessionToken).count() == 1


class TestCourts:

    def test_list_with_booking_counts(self, db_session, booking):
        result = court_service.list_courts()
        assert result["count"] == 2
        by_number = {c["court_number"]: c for c in result["items"]}
        assert by_number[1]["booking_count"] == 1
        assert by_number[2]["booking_count"] == 0

    def test_list_active_only(self, db_session, courts):
        result = court_service.list_courts(active_only=True)
        assert [c["court_number"] for c in result["items"]] == [1]

    def test_duplicate_number_conflicts(self, db_session, courts):
        with pytest.raises(ConflictError):
            court_service.create_court(patch={"name": "Another", "court_number": 1})
        with pytest.raises(ConflictError):
            court_service.update_court(courts["inactive"].id, patch={"court_number": 1})

    def test_delete_with_bookings_conflicts(self, db_session, booking, courts):
        with pytest.raises(ConflictError):
            court_service.delete_court(courts["active"].id)

    def test_delete_unused_court(self, db_session, courts):
        court_id = courts["inactive"].id
        court_service.delete_court(court_id)
        with pytest.raises(NotFoundError):
            court_service.get_court(court_id)

    def test_toggle(self, db_session, courts):
        assert court_service.toggle_court_status(courts["active"].id).is_active is False
        assert court_service.toggle_court_status(courts["active"].id).is_active is True

    def test_renumber_carries_bookings(self, db_session, booking, courts):
        court_service.update_court(courts["active"].id, patch={"court_number": 7})
        db_session.expire_all()
        assert db_session.get(Booking, booking.id).court_number == 7
