from __future__ import annotations
from datetime import date, datetime
from padelhub.time_utils import parse_iso_datetime, parse_iso_date, is_time_of_day

import re
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Boolean, Date, Float, Integer, String, Text, DateTime
from sqlalchemy.orm import DeclarativeMeta


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

# Extra hours are billed in fractions of an hour; a single addition above
# a full day is a typo.
MAX_EXTRA_HOURS = 24

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class ValidationError(ValueError):
    """400-level input problem."""


class NotFoundError(ValueError):
    """404-level: a referenced entity does not exist."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate SKU)."""


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _columns_by_key(model: DeclarativeMeta) -> dict[str, Any]:
    mapper = model.__mapper__
    return {c.key: c for c in mapper.columns}


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_float(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            raise ValidationError(f"{key} must be a number")
    raise ValidationError(f"{key} must be a number")


def _coerce_value(col, value: Any):
    coltype = col.type

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if isinstance(coltype, Integer):
        return _coerce_int(col.key, value)

    if isinstance(coltype, Float):
        return _coerce_float(col.key, value)

    # Booleans
    if isinstance(coltype, Boolean):
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("true", "1", "yes", "on"):
                return True
            if lowered in ("false", "0", "no", "off", ""):
                return False
            raise ValidationError(f"{col.key} must be a boolean")
        # fallback: truthiness
        return bool(value)

    # Datetimes (accept ISO-8601 strings; normalize to UTC)
    if isinstance(coltype, DateTime):
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            try:
                dt = parse_iso_datetime(value)
            except Exception:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            if dt is None:
                raise ValidationError(f"{col.key} must be an ISO-8601 datetime")
            return dt
        raise ValidationError(f"{col.key} must be a datetime")

    # Calendar dates ("YYYY-MM-DD")
    if isinstance(coltype, Date):
        if isinstance(value, (date, str)):
            try:
                d = parse_iso_date(value)
            except ValueError:
                raise ValidationError(f"{col.key} must be an ISO-8601 date")
            if d is None:
                raise ValidationError(f"{col.key} is required")
            return d
        raise ValidationError(f"{col.key} must be a date")

    # Strings / Text
    if isinstance(coltype, (String, Text)):
        return str(value).strip()

    # Default: leave as-is
    return value


def validate_payload(
    *,
    model: DeclarativeMeta,
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - SQLAlchemy column metadata (nullable, type, String length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = _columns_by_key(model)

    # Reject unknown / non-writable fields
    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        # NULL handling
        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(col, raw)

        # Blank string check for non-nullable text fields
        if isinstance(col.type, (String, Text)) and not col.nullable:
            if isinstance(val, str) and val == "":
                raise ValidationError(f"{k} cannot be blank")

        # Optional text that was sent blank is stored as NULL
        if isinstance(col.type, (String, Text)) and col.nullable and val == "":
            val = None

        # Max length check for String(n)
        if isinstance(col.type, String) and col.type.length and isinstance(val, str):
            if len(val) > col.type.length:
                raise ValidationError(f"{k} exceeds max length {col.type.length}")

        patch[k] = val

    return patch


def _check_price(patch: dict, field: str) -> None:
    if field in patch and patch[field] is not None:
        price = patch[field]
        if price < 0:
            raise ValidationError(f"{field} must be >= 0")
        if price > MAX_PRICE_CENTS:
            raise ValidationError(f"{field} cannot exceed {MAX_PRICE_CENTS}")


def _check_min_length(patch: dict, field: str, minimum: int, label: str) -> None:
    if field in patch and patch[field] is not None and len(patch[field]) < minimum:
        raise ValidationError(f"{label} must be at least {minimum} characters")


def enforce_rules_court(patch: dict) -> None:
    _check_min_length(patch, "name", 2, "Court name")
    if "court_number" in patch and patch["court_number"] < 1:
        raise ValidationError("Court number must be at least 1")
    _check_price(patch, "base_price_cents")


def enforce_rules_category(patch: dict) -> None:
    from .models import CATEGORY_TYPES

    _check_min_length(patch, "name", 2, "Name")
    if "type" in patch and patch["type"] not in CATEGORY_TYPES:
        raise ValidationError(f"type must be one of {', '.join(CATEGORY_TYPES)}")


def enforce_rules_item(patch: dict) -> None:
    _check_min_length(patch, "name", 2, "Name")
    _check_min_length(patch, "sku", 2, "SKU")
    if "quantity" in patch and patch["quantity"] < 0:
        raise ValidationError("Quantity must be 0 or more")
    if "min_stock" in patch and patch["min_stock"] < 0:
        raise ValidationError("Minimum stock must be 0 or more")
    _check_price(patch, "cost_price_cents")
    _check_price(patch, "sell_price_cents")


def enforce_rules_booking(patch: dict) -> None:
    from .models import BOOKING_STATUSES

    _check_min_length(patch, "customer_name", 2, "Customer name")
    if "court_number" in patch and patch["court_number"] < 1:
        raise ValidationError("Court number is required")
    for field in ("start_time", "end_time"):
        if field in patch and not is_time_of_day(patch[field]):
            raise ValidationError(f"{field} must be a HH:MM time")
    _check_price(patch, "base_price_cents")
    _check_price(patch, "extra_hour_price_cents")
    if "extra_hours" in patch and patch["extra_hours"] < 0:
        raise ValidationError("extra_hours must be >= 0")
    if "status" in patch and patch["status"] not in BOOKING_STATUSES:
        raise ValidationError(f"status must be one of {', '.join(BOOKING_STATUSES)}")


def enforce_rules_stock_adjustment(patch: dict) -> None:
    # IN/OUT move stock by a positive delta; ADJUSTMENT sets an absolute count
    from .models import STOCK_TRANSACTION_TYPES

    tx_type = patch.get("type")
    if tx_type not in STOCK_TRANSACTION_TYPES:
        raise ValidationError(f"type must be one of {', '.join(STOCK_TRANSACTION_TYPES)}")

    quantity = patch.get("quantity")
    if quantity is None:
        raise ValidationError("quantity is required")
    if tx_type in ("IN", "OUT") and quantity <= 0:
        raise ValidationError(f"quantity must be > 0 for {tx_type}")
    if tx_type == "ADJUSTMENT" and quantity < 0:
        raise ValidationError("quantity must be >= 0 for ADJUSTMENT")


def enforce_rules_sale(patch: dict) -> None:
    quantity = patch.get("quantity")
    if quantity is None or quantity < 1:
        raise ValidationError("Quantity must be at least 1")


def enforce_rules_user(patch: dict) -> None:
    from .models import USER_ROLES

    if "email" in patch:
        patch["email"] = patch["email"].lower()
        if not _EMAIL_RE.match(patch["email"]):
            raise ValidationError("Invalid email address")
    _check_min_length(patch, "name", 2, "Name")
    if "role" in patch and patch["role"] not in USER_ROLES:
        raise ValidationError(f"role must be one of {', '.join(USER_ROLES)}")


def parse_extra_hours(payload: dict) -> tuple[float, int]:
    """
    Validate an extra-hours request body: {"hours": >0, "price_per_hour_cents": >=0}.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    if "hours" not in payload:
        raise ValidationError("Missing required fields: hours")

    hours = _coerce_float("hours", payload.get("hours"))
    if hours <= 0:
        raise ValidationError("Hours must be greater than 0")
    if hours > MAX_EXTRA_HOURS:
        raise ValidationError(f"Hours cannot exceed {MAX_EXTRA_HOURS}")

    raw_price = payload.get("price_per_hour_cents", 0)
    price = _coerce_int("price_per_hour_cents", 0 if raw_price is None else raw_price)
    _check_price({"price_per_hour_cents": price}, "price_per_hour_cents")
    return hours, price
