# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication and user administration.

Every booking and stock adjustment is attributed to a user, so accounts
are individual. Passwords are hashed with bcrypt; session tokens are
managed separately (see session_service.py).

Admin invariant: there is always at least one ADMIN. Deleting or demoting
the last one raises ConflictError.
"""

import logging

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Booking, StockTransaction, User
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

USER_MUTABLE_FIELDS = {"email", "name", "role"}


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - A string of at least 6 characters

    Raises PasswordValidationError if requirements not met.
    """
    if not isinstance(password, str):
        raise PasswordValidationError("Password is required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise PasswordValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt (cost factor from BCRYPT_ROUNDS, default 12).

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including a
    malformed stored hash).
    """
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    if not email:
        return None

    user = db.session.query(User).filter(User.email == email.strip().lower()).first()
    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


# =============================================================================
# User administration
# =============================================================================

def list_users() -> list[User]:
    return db.session.query(User).order_by(User.created_at.desc(), User.id.desc()).all()


def get_user(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def _ensure_email_available(email: str, *, exclude_user_id: int | None = None) -> None:
    q = db.session.query(User.id).filter(User.email == email)
    if exclude_user_id is not None:
        q = q.filter(User.id != exclude_user_id)
    if q.first() is not None:
        raise ConflictError("A user with this email already exists")


def _admin_count() -> int:
    return db.session.query(User).filter(User.role == "ADMIN").count()


def create_user(*, email: str, name: str, password: str, role: str = "STAFF") -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        ConflictError: email already registered
        PasswordValidationError: password doesn't meet requirements
    """
    email = email.strip().lower()
    _ensure_email_available(email)

    user = User(
        email=email,
        name=name,
        role=role,
        password_hash=hash_password(password),
    )
    db.session.add(user)
    db.session.commit()
    logger.info("Created user %s (%s)", user.email, user.role)
    return user


def update_user(user_id: int, *, patch: dict, password: str | None = None) -> User:
    """
    Edit a user. A password, when given, is re-hashed; omitting it keeps
    the current one.
    """
    user = get_user(user_id)

    if "email" in patch and patch["email"] != user.email:
        _ensure_email_available(patch["email"], exclude_user_id=user.id)

    if patch.get("role") == "STAFF" and user.role == "ADMIN" and _admin_count() <= 1:
        raise ConflictError("Cannot demote the last admin")

    for k, v in patch.items():
        if k in USER_MUTABLE_FIELDS:
            setattr(user, k, v)

    if password:
        user.password_hash = hash_password(password)

    db.session.commit()
    return user


def delete_user(user_id: int, *, actor_user_id: int | None = None) -> None:
    """
    Delete a user and their sessions.

    Refused (ConflictError) for the last ADMIN, for the acting user
    themselves, and for users that bookings or stock transactions are
    attributed to.
    """
    user = get_user(user_id)

    if actor_user_id is not None and user.id == actor_user_id:
        raise ConflictError("You cannot delete your own account")

    if user.role == "ADMIN" and _admin_count() <= 1:
        raise ConflictError("Cannot delete the last admin")

    has_history = (
        db.session.query(Booking.id).filter_by(created_by_user_id=user.id).first() is not None
        or db.session.query(StockTransaction.id).filter_by(created_by_user_id=user.id).first() is not None
    )
    if has_history:
        raise ConflictError("Cannot delete a user with recorded bookings or stock transactions")

    db.session.delete(user)
    db.session.commit()
    logger.info("Deleted user %s", user_id)
