"""
Business logic for time entries and the visit duration total.

``service_visits.total_duration_minutes`` must always equal the sum of
the visit's time entries.  Every path that changes a visit's entries
(insert, update, delete, visit creation with initial entries) makes
the change and calls ``recompute_total`` inside the same
``transaction``.  The total is recomputed from all entries rather than
adjusted by a delta, so a drifted value is repaired by the next write.

``transaction`` holds the SQLite write lock from its first statement,
so concurrent writers to the same visit are serialised and no
recompute can miss a sibling insert that committed before it.
"""

import logging
import sqlite3
from typing import Any, List

from crm_api.app.core.db import get_cursor, transaction
from crm_api.app.core.errors import InternalFailure
from crm_api.app.core.logging_config import log_failures
from crm_api.app.core.scope import ServiceVisitRef, TimeEntryRef, require_access
from crm_api.app.schemas.time_entry import TimeEntryRead
from crm_api.app.services.audit_service import AuditService
from crm_api.app.services.validation import validate_time_entry, validate_time_entry_update


logger = logging.getLogger(__name__)

_COLUMNS = "id, service_visit_id, date, duration_minutes, description, created_at"


def _to_entry(row: sqlite3.Row) -> TimeEntryRead:
    return TimeEntryRead(**{key: row[key] for key in row.keys()})


def recompute_total(cursor: sqlite3.Cursor, visit_id: int) -> int:
    """Store the sum of all of the visit's entry durations on the visit.

    Must be called on a cursor inside ``transaction``.
    """
    total = cursor.execute(
        "SELECT COALESCE(SUM(duration_minutes), 0) AS total FROM time_entries WHERE service_visit_id = ?",
        (visit_id,),
    ).fetchone()["total"]
    cursor.execute(
        "UPDATE service_visits SET total_duration_minutes = ?, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
        (total, visit_id),
    )
    return total


def insert_time_entry(cursor: sqlite3.Cursor, visit_id: int, data: dict) -> int:
    cursor.execute(
        """
        INSERT INTO time_entries (service_visit_id, date, duration_minutes, description)
        VALUES (?, ?, ?, ?)
        """,
        (visit_id, data["date"], data["duration_minutes"], data["description"]),
    )
    return cursor.lastrowid


class TimeEntryService:
    """Service for time entries of a service visit."""

    @classmethod
    @log_failures("add_time_entry", target="visit_id")
    async def add_time_entry(cls, account_id: int, visit_id: int, body: Any) -> TimeEntryRead:
        """Log time against a visit and refresh the visit total atomically.

        Ownership and input are checked before the transaction opens.
        A failure inside the transaction leaves neither the entry nor
        a changed total behind and is raised as ``InternalFailure``.
        """
        with get_cursor() as cursor:
            require_access(cursor, account_id, ServiceVisitRef(visit_id))
        data = validate_time_entry(body)
        try:
            with transaction() as cursor:
                # The visit may have been deleted since the check above.
                require_access(cursor, account_id, ServiceVisitRef(visit_id))
                entry_id = insert_time_entry(cursor, visit_id, data)
                total = recompute_total(cursor, visit_id)
                row = cursor.execute(
                    f"SELECT {_COLUMNS} FROM time_entries WHERE id = ?", (entry_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            logger.error(
                "add_time_entry failed: visit=%s kind=internal error=%s", visit_id, exc
            )
            raise InternalFailure("Failed to create time entry") from exc
        logger.info("Time entry %s added to visit %s (total %s min)", entry_id, visit_id, total)
        await AuditService.log(
            account_id, "create", "time_entry", entry_id,
            {"service_visit_id": visit_id, "duration_minutes": data["duration_minutes"]},
        )
        return _to_entry(row)

    @classmethod
    @log_failures("list_time_entries", target="visit_id")
    async def list_time_entries(cls, account_id: int, visit_id: int) -> List[TimeEntryRead]:
        with get_cursor() as cursor:
            require_access(cursor, account_id, ServiceVisitRef(visit_id))
            rows = cursor.execute(
                f"SELECT {_COLUMNS} FROM time_entries WHERE service_visit_id = ? ORDER BY date ASC, id ASC",
                (visit_id,),
            ).fetchall()
        return [_to_entry(row) for row in rows]

    @classmethod
    @log_failures("update_time_entry", target="entry_id")
    async def update_time_entry(cls, account_id: int, entry_id: int, patch: Any) -> TimeEntryRead:
        """Partially update an entry and refresh its visit's total."""
        with get_cursor() as cursor:
            require_access(cursor, account_id, TimeEntryRef(entry_id))
        updates = validate_time_entry_update(patch)
        assignments = ", ".join(f"{field} = ?" for field in updates)
        try:
            with transaction() as cursor:
                require_access(cursor, account_id, TimeEntryRef(entry_id))
                cursor.execute(
                    f"UPDATE time_entries SET {assignments} WHERE id = ?",
                    (*updates.values(), entry_id),
                )
                row = cursor.execute(
                    f"SELECT {_COLUMNS} FROM time_entries WHERE id = ?", (entry_id,)
                ).fetchone()
                recompute_total(cursor, row["service_visit_id"])
        except sqlite3.Error as exc:
            logger.error("update_time_entry failed: entry=%s kind=internal error=%s", entry_id, exc)
            raise InternalFailure("Failed to update time entry") from exc
        await AuditService.log(account_id, "update", "time_entry", entry_id, {"fields": sorted(updates)})
        return _to_entry(row)

    @classmethod
    @log_failures("delete_time_entry", target="entry_id")
    async def delete_time_entry(cls, account_id: int, entry_id: int) -> None:
        """Delete an entry and refresh its visit's total."""
        with get_cursor() as cursor:
            require_access(cursor, account_id, TimeEntryRef(entry_id))
        try:
            with transaction() as cursor:
                require_access(cursor, account_id, TimeEntryRef(entry_id))
                visit_id = cursor.execute(
                    "SELECT service_visit_id FROM time_entries WHERE id = ?", (entry_id,)
                ).fetchone()["service_visit_id"]
                cursor.execute("DELETE FROM time_entries WHERE id = ?", (entry_id,))
                recompute_total(cursor, visit_id)
        except sqlite3.Error as exc:
            logger.error("delete_time_entry failed: entry=%s kind=internal error=%s", entry_id, exc)
            raise InternalFailure("Failed to delete time entry") from exc
        await AuditService.log(
            account_id, "delete", "time_entry", entry_id, {"service_visit_id": visit_id}
        )
