"""
SQLite database integration and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``), running a write transaction (``transaction``),
applying migrations on application start (``init_db``) and a helper
cursor context manager for read-only work.

Every operation opens its own connection; nothing is shared between
requests except the database file.  Cross-record consistency (the
stored ``total_duration_minutes`` of a service visit) relies on
``transaction`` taking the SQLite write lock up front with
``BEGIN IMMEDIATE``, so two writers on the same visit run one after
the other and each recompute sees every previously committed entry.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import logging
import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from .config import settings


logger = logging.getLogger(__name__)


def get_database_path() -> str:
    """Compute the path to the SQLite database file.

    If ``settings.database_url`` is an absolute path, use it directly.
    Otherwise resolve it relative to the project root.
    """
    db_url = settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent  # crm_api/
    return str((base_dir / db_url).resolve())


def _casefold(value):
    return value.casefold() if isinstance(value, str) else value


def get_connection() -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    The connection uses a row factory to access columns by name and
    enables foreign key enforcement, which SQLite leaves off unless
    requested per connection.  A ``casefold`` SQL function is registered
    because SQLite's own ``lower()`` only folds ASCII letters.
    ``timeout`` is how long a writer waits on a locked database before
    ``sqlite3.OperationalError`` is raised.
    """
    conn = sqlite3.connect(get_database_path(), timeout=settings.db_timeout_seconds)
    conn.row_factory = sqlite3.Row
    conn.create_function("casefold", 1, _casefold, deterministic=True)
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_cursor() -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection()
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


@contextmanager
def transaction() -> Iterator[sqlite3.Cursor]:
    """Run the enclosed statements as one atomic write transaction.

    The write lock is acquired before the first statement executes.
    On any exception the transaction is rolled back and the exception
    propagates; nothing written inside the block becomes visible.
    """
    conn = get_connection()
    try:
        conn.execute("BEGIN IMMEDIATE")
        yield conn.cursor()
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: Initial schema
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS accounts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password TEXT NOT NULL,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS customers (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            account_id INTEGER NOT NULL,
            name TEXT NOT NULL,
            phone TEXT NOT NULL,
            email TEXT,
            address TEXT NOT NULL,
            service_interval INTEGER,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(account_id) REFERENCES accounts(id)
        );

        -- account_id is denormalised from the customer so a visit can be
        -- scoped without joining customers; it may be NULL on old rows.
        CREATE TABLE IF NOT EXISTS service_visits (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            customer_id INTEGER NOT NULL,
            account_id INTEGER,
            service_name TEXT NOT NULL,
            service_date TEXT NOT NULL,
            notes TEXT,
            total_duration_minutes INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(customer_id) REFERENCES customers(id),
            FOREIGN KEY(account_id) REFERENCES accounts(id)
        );

        CREATE TABLE IF NOT EXISTS time_entries (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            service_visit_id INTEGER NOT NULL,
            date TEXT NOT NULL,
            duration_minutes INTEGER NOT NULL CHECK (duration_minutes >= 0),
            description TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY(service_visit_id) REFERENCES service_visits(id) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS audit_logs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            account_id INTEGER,
            action TEXT NOT NULL,
            object_type TEXT,
            object_id INTEGER,
            timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            details TEXT,
            FOREIGN KEY(account_id) REFERENCES accounts(id)
        );
        """,
    ),
    # Migration 2: indices on ownership columns used by every scoped query
    (
        2,
        """
        CREATE INDEX IF NOT EXISTS idx_customers_account_id ON customers(account_id);
        CREATE INDEX IF NOT EXISTS idx_service_visits_customer_id ON service_visits(customer_id);
        CREATE INDEX IF NOT EXISTS idx_service_visits_account_id ON service_visits(account_id);
        CREATE INDEX IF NOT EXISTS idx_time_entries_visit_id ON time_entries(service_visit_id);
        CREATE INDEX IF NOT EXISTS idx_audit_logs_account_id ON audit_logs(account_id);
        """,
    ),
]


def init_db() -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new entries of
    ``MIGRATIONS``.  Append new migrations with an incremented version.
    """
    with get_cursor() as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                logger.info("Applying migration %s", version)
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version
