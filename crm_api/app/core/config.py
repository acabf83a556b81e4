"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
API can start against a local SQLite file without any setup.  Tests
override individual attributes on the module-level ``settings``
instance instead of touching the environment.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Service CRM API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24)))
    algorithm: str = os.getenv("ALGORITHM", "HS256")

    # Path to the SQLite database file.  Relative paths are resolved
    # against the project root by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "service_crm.db")

    # Seconds a writer waits for the database lock before giving up.
    # Concurrent time entry inserts queue on this lock.
    db_timeout_seconds: float = float(os.getenv("DB_TIMEOUT_SECONDS", "30"))

    min_password_length: int = int(os.getenv("MIN_PASSWORD_LENGTH", "6"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.
settings = Settings()
