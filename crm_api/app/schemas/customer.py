"""
Pydantic models for customer data.

``CustomerRead`` mirrors a stored customer plus what is derived from
its latest service visit: that visit's date and name and, when the
customer has a ``service_interval``, the next due date and its status.
``CustomerListItem`` adds the number of service visits.  None of the
derived values are stored on the customer.
"""

import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field


DueStatus = Literal["late", "due-today", "due-soon", "on-track"]


class CustomerRead(BaseModel):
    id: int
    name: str = Field(..., examples=["Jane Doe"])
    phone: str = Field(..., examples=["555-1234"])
    email: Optional[str] = Field(None, examples=["jane@example.com"])
    address: str = Field(..., examples=["1 Main St"])
    service_interval: Optional[int] = Field(None, description="Days between recommended visits")
    last_service_date: Optional[datetime.date] = None
    last_service_name: Optional[str] = None
    next_due_date: Optional[datetime.date] = None
    days_until_due: Optional[int] = Field(None, description="Negative when the customer is overdue")
    due_status: Optional[DueStatus] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    model_config = {
        "from_attributes": True,
    }


class CustomerListItem(CustomerRead):
    visit_count: int = 0
