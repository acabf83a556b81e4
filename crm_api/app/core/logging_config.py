"""
Logging setup and failure logging for the service layer.

``setup_logging`` attaches console (and optionally file) handlers to
the root logger once.  Failures raised by services are logged through
``log_failure`` with three structured fields, ``operation``, ``target``
and ``kind``, which the formatter appends to the message.  The fields
carry ids only; messages shown to other tenants are never logged with
their data.
"""

import functools
import inspect
import logging
from pathlib import Path
from typing import Any, Callable, Optional


FAILURE_FIELDS = ("operation", "target", "kind")


class FailureFormatter(logging.Formatter):
    """Formatter that appends failure context when a record has it."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if getattr(record, "operation", None) is None:
            return message
        context = " ".join(f"{field}={getattr(record, field, None)}" for field in FAILURE_FIELDS)
        return f"{message} [{context}]"


def setup_logging(level: str = "INFO", logfile: Optional[str] = None) -> None:
    """Configure the root logger unless it already has handlers.

    ``level`` is a level name, case insensitive; unknown names fall
    back to ``INFO``.  ``logfile``, when given, adds a UTF-8 file
    handler next to the console handler.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    formatter = FailureFormatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if logfile:
        handlers.append(logging.FileHandler(Path(logfile).resolve(), encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)


def log_failure(logger: logging.Logger, operation: str, target: Any, exc: Exception) -> None:
    """Log a failed operation with its target id and failure kind.

    Store failures (kind ``internal``) are logged at ERROR, failures the
    caller caused at WARNING.
    """
    kind = getattr(exc, "kind", "internal")
    level = logging.ERROR if kind == "internal" else logging.WARNING
    logger.log(
        level,
        "%s failed: %s",
        operation,
        exc,
        extra={"operation": operation, "target": target, "kind": kind},
    )


def log_failures(operation: str, target: Optional[str] = None) -> Callable:
    """Decorate an async service method so its domain failures are logged.

    ``target`` names the argument holding the id the operation works on.
    Internal failures are skipped: they are logged where the store error
    is caught, together with its cause.
    """

    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except Exception as exc:
                kind = getattr(exc, "kind", None)
                if kind is not None and kind != "internal":
                    target_id = None
                    if target:
                        target_id = signature.bind_partial(*args, **kwargs).arguments.get(target)
                    log_failure(logging.getLogger(func.__module__), operation, target_id, exc)
                raise

        return wrapper

    return decorator
