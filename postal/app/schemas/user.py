"""
User Pydantic schemas.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class UserResponse(BaseModel):
    id: int
    email: str
    address: str
    priv: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    """Admin edit of a user; ``priv`` is the only way to grant admin."""
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, max_length=500)
    priv: Optional[bool] = None

