"""
Shipping method Pydantic schemas.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class ShippingMethodCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    cost: float = Field(..., ge=0)


class ShippingMethodUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    cost: Optional[float] = Field(None, ge=0)


class ShippingMethodResponse(BaseModel):
    id: int
    name: str
    cost: float
    created_at: datetime

    class Config:
        from_attributes = True
