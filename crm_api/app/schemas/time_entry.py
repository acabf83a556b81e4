"""Pydantic models for time logged against a service visit."""

import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TimeEntryRead(BaseModel):
    id: int
    service_visit_id: int
    date: datetime.date
    duration_minutes: int = Field(..., ge=0, examples=[45])
    description: Optional[str] = None
    created_at: Optional[datetime.datetime] = None

    model_config = {
        "from_attributes": True,
    }
