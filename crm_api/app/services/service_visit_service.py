"""
Business logic for service visits.

A visit belongs to a customer and records the customer's account in
its own ``account_id`` column.  Visits are scoped with the visit rule
of ``crm_api.app.core.scope``: either the visit's account or its
customer's account must be the caller.
"""

import logging
import sqlite3
from typing import Any, List, Optional

from crm_api.app.core.db import get_cursor, transaction
from crm_api.app.core.errors import InternalFailure, NotFoundError
from crm_api.app.core.logging_config import log_failures
from crm_api.app.core.scope import (
    VISIT_SCOPE_FROM,
    VISIT_SCOPE_WHERE,
    CustomerRef,
    ServiceVisitRef,
    require_access,
)
from crm_api.app.schemas.service_visit import ServiceVisitDetail, ServiceVisitRead
from crm_api.app.services.audit_service import AuditService
from crm_api.app.services.time_entry_service import TimeEntryService, insert_time_entry, recompute_total
from crm_api.app.services.validation import validate_service_visit_create


logger = logging.getLogger(__name__)

_SELECT = (
    "SELECT sv.id, sv.customer_id, c.name AS customer_name, sv.service_name, sv.service_date, "
    "sv.notes, sv.total_duration_minutes, sv.created_at, sv.updated_at "
    f"{VISIT_SCOPE_FROM}"
)


def _to_visit(row: sqlite3.Row) -> ServiceVisitRead:
    return ServiceVisitRead(**{key: row[key] for key in row.keys()})


class ServiceVisitService:
    """Service for creating, listing and removing service visits."""

    @classmethod
    @log_failures("create_visit", target="account_id")
    async def create_visit(cls, account_id: int, body: Any) -> ServiceVisitDetail:
        """Create a visit under one of the caller's customers.

        Optional initial ``time_entries`` are inserted in the same
        transaction and the total is computed by ``recompute_total``,
        never taken from the request.
        """
        data = validate_service_visit_create(body)
        customer_ref = CustomerRef(data["customer_id"])
        with get_cursor() as cursor:
            require_access(cursor, account_id, customer_ref)
        try:
            with transaction() as cursor:
                require_access(cursor, account_id, customer_ref)
                cursor.execute(
                    """
                    INSERT INTO service_visits (customer_id, account_id, service_name, service_date, notes)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        data["customer_id"],
                        account_id,
                        data["service_name"],
                        data["service_date"],
                        data["notes"],
                    ),
                )
                visit_id = cursor.lastrowid
                for entry in data["time_entries"]:
                    insert_time_entry(cursor, visit_id, entry)
                recompute_total(cursor, visit_id)
        except sqlite3.Error as exc:
            logger.error(
                "create_visit failed: customer=%s kind=internal error=%s", data["customer_id"], exc
            )
            raise InternalFailure("Failed to create service visit") from exc
        logger.info("Account %s created service visit %s", account_id, visit_id)
        await AuditService.log(
            account_id, "create", "service_visit", visit_id, {"customer_id": data["customer_id"]}
        )
        return await cls.get_visit(account_id, visit_id)

    @classmethod
    @log_failures("list_visits", target="account_id")
    async def list_visits(
        cls,
        account_id: int,
        customer_id: Optional[int] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ServiceVisitRead]:
        """Return the caller's visits, newest service date first."""
        query = f"{_SELECT} WHERE {VISIT_SCOPE_WHERE}"
        params: list = [account_id, account_id]
        if customer_id is not None:
            query += " AND sv.customer_id = ?"
            params.append(customer_id)
        query += " ORDER BY sv.service_date DESC, sv.id DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])
        with get_cursor() as cursor:
            rows = cursor.execute(query, tuple(params)).fetchall()
        return [_to_visit(row) for row in rows]

    @classmethod
    @log_failures("get_visit", target="visit_id")
    async def get_visit(cls, account_id: int, visit_id: int) -> ServiceVisitDetail:
        with get_cursor() as cursor:
            require_access(cursor, account_id, ServiceVisitRef(visit_id))
            row = cursor.execute(f"{_SELECT} WHERE sv.id = ?", (visit_id,)).fetchone()
        if row is None:
            raise NotFoundError("Service visit not found")
        entries = await TimeEntryService.list_time_entries(account_id, visit_id)
        return ServiceVisitDetail(**_to_visit(row).model_dump(), time_entries=entries)

    @classmethod
    @log_failures("delete_visit", target="visit_id")
    async def delete_visit(cls, account_id: int, visit_id: int) -> None:
        """Delete a visit together with its time entries."""
        with get_cursor() as cursor:
            require_access(cursor, account_id, ServiceVisitRef(visit_id))
        try:
            with transaction() as cursor:
                cursor.execute("DELETE FROM time_entries WHERE service_visit_id = ?", (visit_id,))
                cursor.execute("DELETE FROM service_visits WHERE id = ?", (visit_id,))
        except sqlite3.Error as exc:
            logger.error("delete_visit failed: visit=%s kind=internal error=%s", visit_id, exc)
            raise InternalFailure("Failed to delete service visit") from exc
        await AuditService.log(account_id, "delete", "service_visit", visit_id)
