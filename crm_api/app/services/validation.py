"""
Field-level validation for every write.

All validators run before a write transaction is opened, so a rejected
request never leaves partial state behind.  Request bodies are plain
mappings: a key that is absent means "leave unchanged" and is read as
``MISSING``, while a key that is present with an empty value is an
error for required fields.  Strings are stored trimmed.
"""

import sqlite3
from datetime import date, datetime
from typing import Any, Dict, List, Mapping, Optional

from crm_api.app.core.config import settings
from crm_api.app.core.errors import ConflictError, ValidationError
from crm_api.app.core.security import hash_password


class _Missing:
    """Marker for a patch field that was not sent."""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()


def _as_mapping(body: Any) -> Mapping[str, Any]:
    if not isinstance(body, Mapping):
        raise ValidationError("Request body must be a JSON object")
    return body


def require_text(value: Any, label: str) -> str:
    """Return ``value`` trimmed; reject non-strings and blank strings."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} cannot be empty")
    return value.strip()


def optional_text(value: Any, label: str) -> Optional[str]:
    """Trim an optional string; blank becomes ``None``."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{label} must be a string")
    return value.strip() or None


def parse_int(value: Any, label: str) -> int:
    """Parse an integer from a JSON number or a numeric string."""
    if isinstance(value, bool):
        raise ValidationError(f"{label} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip(), 10)
        except ValueError:
            pass
    raise ValidationError(f"{label} must be an integer")


def parse_service_interval(value: Any) -> Optional[int]:
    """Parse the optional service interval in days.

    ``None`` and blank strings mean "no interval".  Anything else must
    be a positive integer.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    interval = parse_int(value, "service_interval")
    if interval < 1:
        raise ValidationError("service_interval must be a positive integer")
    return interval


def parse_date(value: Any, label: str) -> str:
    """Normalise an ISO date or datetime string to ``YYYY-MM-DD``."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required")
    text = value.strip()
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date().isoformat()
    except ValueError:
        raise ValidationError(f"{label} must be an ISO date (YYYY-MM-DD)")


def parse_duration(value: Any) -> int:
    minutes = parse_int(value, "duration_minutes")
    if minutes < 0:
        raise ValidationError("duration_minutes cannot be negative")
    return minutes


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------

def _check_password(value: Any) -> str:
    if not isinstance(value, str) or len(value) < settings.min_password_length:
        raise ValidationError(
            f"Password must be at least {settings.min_password_length} characters"
        )
    return value


def _check_email_free(cursor: sqlite3.Cursor, email: str, account_id: Optional[int]) -> None:
    row = cursor.execute("SELECT id FROM accounts WHERE email = ?", (email,)).fetchone()
    if row is not None and row["id"] != account_id:
        raise ConflictError("Email is already in use")


def validate_account_registration(cursor: sqlite3.Cursor, body: Any) -> Dict[str, str]:
    body = _as_mapping(body)
    name = require_text(body.get("name"), "Name")
    email = require_text(body.get("email"), "Email")
    password = _check_password(body.get("password"))
    _check_email_free(cursor, email, None)
    return {"name": name, "email": email, "password": hash_password(password)}


def validate_profile_update(
    cursor: sqlite3.Cursor, current: Mapping[str, Any], patch: Any
) -> Dict[str, str]:
    """Validate a profile patch for the account ``current``.

    Each of ``name``, ``email`` and ``password`` is optional.  Email
    must not belong to a different account; the account's own email
    is accepted.  The password is returned already hashed.  A patch
    without any recognised field is rejected.
    """
    patch = _as_mapping(patch)
    updates: Dict[str, str] = {}

    name = patch.get("name", MISSING)
    if name is not MISSING:
        updates["name"] = require_text(name, "Name")

    email = patch.get("email", MISSING)
    if email is not MISSING:
        email = require_text(email, "Email")
        _check_email_free(cursor, email, current["id"])
        updates["email"] = email

    password = patch.get("password", MISSING)
    if password is not MISSING:
        updates["password"] = hash_password(_check_password(password))

    if not updates:
        raise ValidationError("No valid fields provided")
    return updates


# ---------------------------------------------------------------------------
# Customers
# ---------------------------------------------------------------------------

_CUSTOMER_REQUIRED = (("name", "Name"), ("phone", "Phone"), ("address", "Address"))


def validate_customer_create(body: Any) -> Dict[str, Any]:
    body = _as_mapping(body)
    data: Dict[str, Any] = {}
    for field, label in _CUSTOMER_REQUIRED:
        if body.get(field) is None:
            raise ValidationError("Name, phone, and address are required")
        data[field] = require_text(body[field], label)
    data["email"] = optional_text(body.get("email"), "Email")
    data["service_interval"] = parse_service_interval(body.get("service_interval"))
    return data


def validate_customer_update(patch: Any) -> Dict[str, Any]:
    patch = _as_mapping(patch)
    updates: Dict[str, Any] = {}
    for field, label in _CUSTOMER_REQUIRED:
        value = patch.get(field, MISSING)
        if value is not MISSING:
            updates[field] = require_text(value, label)
    email = patch.get("email", MISSING)
    if email is not MISSING:
        updates["email"] = optional_text(email, "Email")
    interval = patch.get("service_interval", MISSING)
    if interval is not MISSING:
        updates["service_interval"] = parse_service_interval(interval)
    if not updates:
        raise ValidationError("No valid fields provided")
    return updates


# ---------------------------------------------------------------------------
# Service visits and time entries
# ---------------------------------------------------------------------------

def validate_time_entry(body: Any) -> Dict[str, Any]:
    body = _as_mapping(body)
    if not body.get("date") or body.get("duration_minutes") is None:
        raise ValidationError("date and duration_minutes are required")
    return {
        "date": parse_date(body["date"], "date"),
        "duration_minutes": parse_duration(body["duration_minutes"]),
        "description": optional_text(body.get("description"), "description"),
    }


def validate_time_entry_update(patch: Any) -> Dict[str, Any]:
    patch = _as_mapping(patch)
    updates: Dict[str, Any] = {}
    if patch.get("date", MISSING) is not MISSING:
        updates["date"] = parse_date(patch["date"], "date")
    if patch.get("duration_minutes", MISSING) is not MISSING:
        updates["duration_minutes"] = parse_duration(patch["duration_minutes"])
    if patch.get("description", MISSING) is not MISSING:
        updates["description"] = optional_text(patch["description"], "description")
    if not updates:
        raise ValidationError("No valid fields provided")
    return updates


def validate_service_visit_create(body: Any) -> Dict[str, Any]:
    body = _as_mapping(body)
    if body.get("customer_id") is None or not body.get("service_name") or not body.get("service_date"):
        raise ValidationError("customer_id, service_name and service_date are required")
    entries = body.get("time_entries") or []
    if not isinstance(entries, list):
        raise ValidationError("time_entries must be a list")
    time_entries: List[Dict[str, Any]] = [validate_time_entry(entry) for entry in entries]
    return {
        "customer_id": parse_int(body["customer_id"], "customer_id"),
        "service_name": require_text(body["service_name"], "service_name"),
        "service_date": parse_date(body["service_date"], "service_date"),
        "notes": optional_text(body.get("notes"), "notes"),
        "time_entries": time_entries,
    }
