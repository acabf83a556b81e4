"""
Audit service for recording and querying account actions.

Writes go to the ``audit_logs`` table after the audited change has
committed.  A failed audit write is logged and does not undo or fail
the change it describes.  Reads are always restricted to the calling
account's own records.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any, Dict, List, Optional

from crm_api.app.core.db import get_cursor, transaction
from crm_api.app.schemas.audit import AuditLogRead


logger = logging.getLogger(__name__)


class AuditService:
    """Service class for writing and retrieving audit logs."""

    @classmethod
    async def log(
        cls,
        account_id: Optional[int],
        action: str,
        object_type: str,
        object_id: Optional[int] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Insert a new audit record.

        Parameters
        ----------
        account_id : Optional[int]
            Account performing the action.
        action : str
            Short description of the action ("create", "update", "delete").
        object_type : str
            Type of object affected ("customer", "service_visit", ...).
        object_id : Optional[int]
            Primary key of the affected object, if applicable.
        details : Optional[dict]
            Additional structured data, stored as JSON.  Never put
            credentials here.
        """
        details_json = json.dumps(details) if details else None
        try:
            with transaction() as cursor:
                cursor.execute(
                    """
                    INSERT INTO audit_logs (account_id, action, object_type, object_id, details)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (account_id, action, object_type, object_id, details_json),
                )
        except sqlite3.Error as exc:
            logger.warning(
                "Audit write failed: action=%s object_type=%s object_id=%s error=%s",
                action, object_type, object_id, exc,
            )

    @classmethod
    async def list_logs(
        cls,
        account_id: int,
        object_type: Optional[str] = None,
        action: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[AuditLogRead]:
        """Return ``account_id``'s audit records, newest first."""
        where_clauses: List[str] = ["account_id = ?"]
        params: List[Any] = [account_id]
        if object_type:
            where_clauses.append("object_type = ?")
            params.append(object_type)
        if action:
            where_clauses.append("action = ?")
            params.append(action)
        query = (
            "SELECT id, action, object_type, object_id, timestamp, details FROM audit_logs "
            "WHERE " + " AND ".join(where_clauses) + " ORDER BY timestamp DESC, id DESC LIMIT ? OFFSET ?"
        )
        params.extend([limit, offset])
        with get_cursor() as cursor:
            rows = cursor.execute(query, tuple(params)).fetchall()
        logs: List[AuditLogRead] = []
        for row in rows:
            details_data: Optional[Dict[str, Any]] = None
            if row["details"]:
                try:
                    details_data = json.loads(row["details"])
                except json.JSONDecodeError:
                    details_data = row["details"]
            logs.append(
                AuditLogRead(
                    id=row["id"],
                    action=row["action"],
                    object_type=row["object_type"],
                    object_id=row["object_id"],
                    timestamp=row["timestamp"],
                    details=details_data,
                )
            )
        return logs
