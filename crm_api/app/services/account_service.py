"""
Business logic for accounts.

Accounts own every other record.  Email addresses are unique across
all accounts (exact, case-sensitive match as stored); the database
UNIQUE constraint backs up the check done during validation, so two
concurrent requests for the same email still end in one
``ConflictError``.
"""

import logging
import sqlite3
from typing import Any, Optional

from crm_api.app.core.db import get_cursor, transaction
from crm_api.app.core.errors import ConflictError, InternalFailure, NotFoundError
from crm_api.app.core.logging_config import log_failures
from crm_api.app.core.security import verify_password
from crm_api.app.schemas.account import AccountRead
from crm_api.app.services.audit_service import AuditService
from crm_api.app.services.validation import validate_account_registration, validate_profile_update


logger = logging.getLogger(__name__)

_PUBLIC_COLUMNS = "id, name, email, created_at, updated_at"


def _to_account(row: sqlite3.Row) -> AccountRead:
    return AccountRead(
        id=row["id"],
        name=row["name"],
        email=row["email"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class AccountService:
    """Registration, authentication and profile edits."""

    @classmethod
    @log_failures("register")
    async def register(cls, body: Any) -> AccountRead:
        """Create an account.  Raises ``ConflictError`` for a taken email."""
        with get_cursor() as cursor:
            data = validate_account_registration(cursor, body)
        logger.info("Registering account %s", data["email"])
        try:
            with transaction() as cursor:
                cursor.execute(
                    "INSERT INTO accounts (name, email, password) VALUES (?, ?, ?)",
                    (data["name"], data["email"], data["password"]),
                )
                account_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            raise ConflictError("Email is already in use") from exc
        except sqlite3.Error as exc:
            logger.error("Registration failed: kind=internal error=%s", exc)
            raise InternalFailure("Failed to create account") from exc
        await AuditService.log(account_id, "create", "account", account_id, {"email": data["email"]})
        return await cls.get_account(account_id)

    @classmethod
    async def authenticate(cls, email: str, password: str) -> Optional[AccountRead]:
        """Return the account when the credentials match, otherwise ``None``."""
        with get_cursor() as cursor:
            row = cursor.execute(
                f"SELECT {_PUBLIC_COLUMNS}, password FROM accounts WHERE email = ?",
                (email.strip(),),
            ).fetchone()
        if not row or not verify_password(password, row["password"]):
            return None
        return _to_account(row)

    @classmethod
    @log_failures("get_account", target="account_id")
    async def get_account(cls, account_id: int) -> AccountRead:
        with get_cursor() as cursor:
            row = cursor.execute(
                f"SELECT {_PUBLIC_COLUMNS} FROM accounts WHERE id = ?", (account_id,)
            ).fetchone()
        if not row:
            raise NotFoundError("Account not found")
        return _to_account(row)

    @classmethod
    @log_failures("update_profile", target="account_id")
    async def update_profile(cls, account_id: int, patch: Any) -> AccountRead:
        """Apply a profile patch to the caller's own account.

        ``name``, ``email`` and ``password`` are each optional; see
        ``validate_profile_update`` for the rules.  The result is the
        public view, without the credential.
        """
        with get_cursor() as cursor:
            current = cursor.execute(
                "SELECT id, email FROM accounts WHERE id = ?", (account_id,)
            ).fetchone()
            if not current:
                raise NotFoundError("Account not found")
            updates = validate_profile_update(cursor, current, patch)

        assignments = ", ".join(f"{field} = ?" for field in updates)
        try:
            with transaction() as cursor:
                cursor.execute(
                    f"UPDATE accounts SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?",
                    (*updates.values(), account_id),
                )
        except sqlite3.IntegrityError as exc:
            raise ConflictError("Email is already in use") from exc
        except sqlite3.Error as exc:
            logger.error("Profile update failed: account=%s kind=internal error=%s", account_id, exc)
            raise InternalFailure("Failed to update account") from exc

        await AuditService.log(
            account_id, "update", "account", account_id, {"fields": sorted(updates)}
        )
        return await cls.get_account(account_id)
