"""
Pydantic models for service visits.

``total_duration_minutes`` is maintained by the service layer as the
sum of the visit's time entries; clients cannot set it directly.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from .time_entry import TimeEntryRead


class ServiceVisitRead(BaseModel):
    id: int
    customer_id: int
    customer_name: Optional[str] = None
    service_name: str = Field(..., examples=["Lawn mowing"])
    service_date: date
    notes: Optional[str] = None
    total_duration_minutes: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class ServiceVisitDetail(ServiceVisitRead):
    """A visit together with its time entries, oldest first."""

    time_entries: List[TimeEntryRead] = []
