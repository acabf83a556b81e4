"""
Next-service due dates for customers.

A customer with a ``service_interval`` (days) and at least one visit is
next due ``service_interval`` days after the latest visit's date.
"""

import datetime
from typing import Any, Dict, Optional, Union

DUE_SOON_DAYS = 7


def _as_date(value: Union[str, datetime.date]) -> datetime.date:
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    return datetime.date.fromisoformat(str(value)[:10])


def due_status(days_until_due: int) -> str:
    if days_until_due < 0:
        return "late"
    if days_until_due == 0:
        return "due-today"
    if days_until_due <= DUE_SOON_DAYS:
        return "due-soon"
    return "on-track"


def compute_due_info(
    last_service_date: Optional[Union[str, datetime.date]],
    service_interval: Optional[int],
    today: Optional[datetime.date] = None,
) -> Dict[str, Any]:
    """Return ``next_due_date``, ``days_until_due`` and ``due_status``.

    All three are ``None`` when the customer has no visits or no
    interval.  ``today`` defaults to the server's local date.
    """
    if not last_service_date or not service_interval:
        return {"next_due_date": None, "days_until_due": None, "due_status": None}
    next_due = _as_date(last_service_date) + datetime.timedelta(days=service_interval)
    days = (next_due - (today or datetime.date.today())).days
    return {"next_due_date": next_due, "days_until_due": days, "due_status": due_status(days)}
