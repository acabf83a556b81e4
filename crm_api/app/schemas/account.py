"""
Pydantic models for account data.

``AccountRead`` is the public view of an account.  It deliberately has
no password field: the stored credential never leaves the service
layer.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class AccountRead(BaseModel):
    """Schema for reading an account from the API."""

    id: int
    name: str = Field(..., examples=["Pat Smith"])
    email: str = Field(..., examples=["pat@example.com"])
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True,
    }


class LoginRequest(BaseModel):
    email: str = Field(..., examples=["pat@example.com"])
    password: str = Field(..., examples=["strongpassword"])


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
