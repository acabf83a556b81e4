"""
Ownership checks for single-record access.

Every record reachable through the API belongs to exactly one account
through the chain account -> customer -> service visit -> time entry.
``authorize`` walks that chain for a typed reference and returns a
``Verdict``; ``require_access`` turns a denial into ``NotFoundError``.
A record that does not exist and a record owned by someone else are
indistinguishable to the caller.

Each reference type needs a rule registered with ``scoping_rule``;
authorising a reference type without one raises ``TypeError``.
"""

import enum
import logging
import sqlite3
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Type

from .errors import NotFoundError


logger = logging.getLogger(__name__)


class Verdict(enum.Enum):
    ALLOWED = "allowed"
    DENIED = "denied"


@dataclass(frozen=True)
class CustomerRef:
    customer_id: int
    label = "Customer"


@dataclass(frozen=True)
class ServiceVisitRef:
    visit_id: int
    label = "Service visit"


@dataclass(frozen=True)
class TimeEntryRef:
    entry_id: int
    label = "Time entry"


# A visit is owned through its own account_id or, failing that, through
# its customer.  Either one is sufficient.  Used with the aliases ``sv``
# (service_visits) and ``c`` (customers) joined by VISIT_SCOPE_FROM.
VISIT_SCOPE_FROM = "FROM service_visits sv LEFT JOIN customers c ON c.id = sv.customer_id"
VISIT_SCOPE_WHERE = "(sv.account_id = ? OR c.account_id = ?)"


Rule = Callable[[sqlite3.Cursor, int, object], bool]
_RULES: Dict[type, Rule] = {}


def scoping_rule(ref_type: Type) -> Callable[[Rule], Rule]:
    """Register the ownership rule for a reference type."""

    def decorator(func: Rule) -> Rule:
        _RULES[ref_type] = func
        return func

    return decorator


@scoping_rule(CustomerRef)
def _customer_owned(cursor: sqlite3.Cursor, caller_id: int, ref: CustomerRef) -> bool:
    row = cursor.execute(
        "SELECT 1 FROM customers WHERE id = ? AND account_id = ?",
        (ref.customer_id, caller_id),
    ).fetchone()
    return row is not None


def _visit_owned(cursor: sqlite3.Cursor, caller_id: int, visit_id: int) -> bool:
    row = cursor.execute(
        f"SELECT 1 {VISIT_SCOPE_FROM} WHERE sv.id = ? AND {VISIT_SCOPE_WHERE}",
        (visit_id, caller_id, caller_id),
    ).fetchone()
    return row is not None


@scoping_rule(ServiceVisitRef)
def _service_visit_owned(cursor: sqlite3.Cursor, caller_id: int, ref: ServiceVisitRef) -> bool:
    return _visit_owned(cursor, caller_id, ref.visit_id)


@scoping_rule(TimeEntryRef)
def _time_entry_owned(cursor: sqlite3.Cursor, caller_id: int, ref: TimeEntryRef) -> bool:
    # Time entries carry no owner; the parent visit decides.
    row = cursor.execute(
        "SELECT service_visit_id FROM time_entries WHERE id = ?", (ref.entry_id,)
    ).fetchone()
    if row is None:
        return False
    return _visit_owned(cursor, caller_id, row["service_visit_id"])


def authorize(cursor: sqlite3.Cursor, caller_id: Optional[int], ref: object) -> Verdict:
    """Decide whether ``caller_id`` may read or write the referenced record."""
    rule = _RULES.get(type(ref))
    if rule is None:
        raise TypeError(f"No scoping rule registered for {type(ref).__name__}")
    if caller_id is None:
        return Verdict.DENIED
    return Verdict.ALLOWED if rule(cursor, caller_id, ref) else Verdict.DENIED


def require_access(cursor: sqlite3.Cursor, caller_id: Optional[int], ref: object) -> None:
    """Raise ``NotFoundError`` unless ``caller_id`` owns the referenced record."""
    if authorize(cursor, caller_id, ref) is Verdict.DENIED:
        logger.debug("Access denied: account=%s target=%s", caller_id, ref)
        raise NotFoundError(f"{ref.label} not found")
