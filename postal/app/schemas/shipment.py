"""
Shipment Pydantic schemas.

ShipmentRow is the shape every shipment read returns. Joined reads fill
``sender`` and ``method``; plain reads and pushed updates leave them empty.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, computed_field
from postal.app.models.shipment_enums import ShipmentStatus, status_label


class SenderSummary(BaseModel):
    email: str
    address: str

    class Config:
        from_attributes = True


class MethodSummary(BaseModel):
    name: str
    cost: float

    class Config:
        from_attributes = True


class ShipmentRow(BaseModel):
    id: int
    created_at: datetime
    status: str
    to_address: str
    weight: float
    sender_id: Optional[int]
    method_id: Optional[int]
    sender: Optional[SenderSummary] = None
    method: Optional[MethodSummary] = None

    @computed_field
    @property
    def status_label(self) -> str:
        return status_label(self.status)


class ShipmentCreate(BaseModel):
    """
    Schema for creating a shipment through the resource API.

    ``sender_id`` is only honoured for admins; everyone else ships as
    themselves. Status is not accepted: new shipments are always pending.
    """
    to_address: str = Field(..., min_length=1, max_length=500)
    weight: float = Field(..., gt=0, description="Weight in kilograms")
    method_id: int = Field(..., ge=1)
    sender_id: Optional[int] = None


class ShipmentStatusUpdate(BaseModel):
    status: ShipmentStatus


class ShipmentDraft(BaseModel):
    """
    Loosely typed create-form contents.

    Nothing is validated here; the dashboards run the required-field
    checks themselves so they can report a message without a storage call.
    """
    sender_id: Optional[int] = None
    to_address: str = ""
    weight: float = 0
    method_id: Optional[int] = None
