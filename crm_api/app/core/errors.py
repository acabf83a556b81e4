"""
Failure taxonomy shared by services and endpoints.

Services raise these exceptions; endpoints translate them into HTTP
responses with ``raise_http``.  ``NotFoundError`` covers both a record
that does not exist and a record owned by another account, and its
message is the same in both cases.
"""

from fastapi import HTTPException, status


class CRMError(Exception):
    """Base class for all domain failures."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind = "internal"


class NotFoundError(CRMError, ValueError):
    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"


class ValidationError(CRMError, ValueError):
    """Malformed or missing input; the message is shown to the caller."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "validation"


class ConflictError(CRMError, ValueError):
    status_code = status.HTTP_409_CONFLICT
    kind = "conflict"


class InternalFailure(CRMError, RuntimeError):
    """Store or transaction failure.  Nothing was written."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def raise_http(exc: CRMError) -> None:
    """Re-raise a domain failure as an ``HTTPException``."""
    raise HTTPException(status_code=exc.status_code, detail=str(exc)) from exc
