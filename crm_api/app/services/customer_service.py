"""
Business logic for customers.

Customers always belong to the account that created them and are never
reassigned.  Single-record operations go through ``require_access``;
listing goes through ``build_customer_query``, whose predicate always
includes the caller's account id.
"""

import logging
import sqlite3
from typing import Any, List, Mapping, Optional, Type

from crm_api.app.core.db import get_cursor, transaction
from crm_api.app.core.errors import InternalFailure, NotFoundError, ValidationError
from crm_api.app.core.logging_config import log_failures
from crm_api.app.core.scope import CustomerRef, require_access
from crm_api.app.schemas.customer import CustomerListItem, CustomerRead
from crm_api.app.services.audit_service import AuditService
from crm_api.app.services.customer_query import LAST_VISIT_COLUMNS, build_customer_query, customer_list_sql
from crm_api.app.services.due_date import compute_due_info
from crm_api.app.services.validation import validate_customer_create, validate_customer_update


logger = logging.getLogger(__name__)

_COLUMNS = (
    "c.id, c.name, c.phone, c.email, c.address, c.service_interval, c.created_at, c.updated_at, "
    f"{LAST_VISIT_COLUMNS}"
)


def _to_customer(row: sqlite3.Row, model: Type[CustomerRead] = CustomerRead) -> CustomerRead:
    data = {key: row[key] for key in row.keys()}
    data.update(compute_due_info(row["last_service_date"], row["service_interval"]))
    return model(**data)


class CustomerService:
    """Service for managing an account's customers."""

    @classmethod
    @log_failures("list_customers", target="account_id")
    async def list_customers(
        cls,
        account_id: int,
        filters: Optional[Mapping[str, Any]] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[CustomerListItem]:
        """Return the caller's customers ordered by name.

        ``filters`` may contain ``search`` (case-insensitive match on
        name, phone or address) and ``service_interval`` (exact match).
        Each item reports how many service visits the customer has,
        the latest visit and when the next one is due.
        """
        predicate = build_customer_query(account_id, filters)
        sql, params = customer_list_sql(predicate, limit, offset)
        with get_cursor() as cursor:
            rows = cursor.execute(sql, params).fetchall()
        return [_to_customer(row, CustomerListItem) for row in rows]

    @classmethod
    @log_failures("create_customer", target="account_id")
    async def create_customer(cls, account_id: int, body: Any) -> CustomerRead:
        data = validate_customer_create(body)
        try:
            with transaction() as cursor:
                cursor.execute(
                    """
                    INSERT INTO customers (account_id, name, phone, email, address, service_interval)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        account_id,
                        data["name"],
                        data["phone"],
                        data["email"],
                        data["address"],
                        data["service_interval"],
                    ),
                )
                customer_id = cursor.lastrowid
        except sqlite3.Error as exc:
            logger.error("create_customer failed: account=%s kind=internal error=%s", account_id, exc)
            raise InternalFailure("Failed to create customer") from exc
        logger.info("Account %s created customer %s", account_id, customer_id)
        await AuditService.log(account_id, "create", "customer", customer_id, {"name": data["name"]})
        return await cls.get_customer(account_id, customer_id)

    @classmethod
    @log_failures("get_customer", target="customer_id")
    async def get_customer(cls, account_id: int, customer_id: int) -> CustomerRead:
        with get_cursor() as cursor:
            require_access(cursor, account_id, CustomerRef(customer_id))
            row = cursor.execute(
                f"SELECT {_COLUMNS} FROM customers c WHERE c.id = ?", (customer_id,)
            ).fetchone()
        if row is None:
            raise NotFoundError("Customer not found")
        return _to_customer(row)

    @classmethod
    @log_failures("update_customer", target="customer_id")
    async def update_customer(cls, account_id: int, customer_id: int, patch: Any) -> CustomerRead:
        """Partially update a customer.  Absent fields stay unchanged."""
        with get_cursor() as cursor:
            require_access(cursor, account_id, CustomerRef(customer_id))
        updates = validate_customer_update(patch)
        assignments = ", ".join(f"{field} = ?" for field in updates)
        try:
            with transaction() as cursor:
                cursor.execute(
                    f"UPDATE customers SET {assignments}, updated_at = CURRENT_TIMESTAMP "
                    "WHERE id = ? AND account_id = ?",
                    (*updates.values(), customer_id, account_id),
                )
        except sqlite3.Error as exc:
            logger.error("update_customer failed: customer=%s kind=internal error=%s", customer_id, exc)
            raise InternalFailure("Failed to update customer") from exc
        await AuditService.log(account_id, "update", "customer", customer_id, {"fields": sorted(updates)})
        return await cls.get_customer(account_id, customer_id)

    @classmethod
    @log_failures("delete_customer", target="customer_id")
    async def delete_customer(cls, account_id: int, customer_id: int) -> None:
        """Delete a customer that has no service visits."""
        with get_cursor() as cursor:
            require_access(cursor, account_id, CustomerRef(customer_id))
        try:
            with transaction() as cursor:
                count = cursor.execute(
                    "SELECT COUNT(*) AS count FROM service_visits WHERE customer_id = ?",
                    (customer_id,),
                ).fetchone()["count"]
                if count:
                    raise ValidationError(
                        f"Cannot delete customer with {count} service visit(s). Remove service visits first."
                    )
                cursor.execute(
                    "DELETE FROM customers WHERE id = ? AND account_id = ?", (customer_id, account_id)
                )
        except sqlite3.Error as exc:
            logger.error("delete_customer failed: customer=%s kind=internal error=%s", customer_id, exc)
            raise InternalFailure("Failed to delete customer") from exc
        await AuditService.log(account_id, "delete", "customer", customer_id)
