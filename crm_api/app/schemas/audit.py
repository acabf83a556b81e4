"""Pydantic model for audit trail records."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel


class AuditLogRead(BaseModel):
    id: int
    action: str
    object_type: Optional[str] = None
    object_id: Optional[int] = None
    timestamp: Optional[datetime] = None
    details: Optional[Any] = None
