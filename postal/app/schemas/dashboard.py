"""
Dashboard view snapshots.

What the dashboard routes return: the controller's state, its single
error message and the data the view renders.
"""

from typing import List, Optional
from pydantic import BaseModel

from postal.app.schemas.shipment import ShipmentRow, ShipmentDraft
from postal.app.schemas.shipping_method import ShippingMethodResponse
from postal.app.schemas.user import UserResponse


class DashboardStats(BaseModel):
    total_shipments: int
    pending_shipments: int
    delivered_shipments: int
    total_users: int
    total_revenue: float


class AdminDashboardView(BaseModel):
    state: str
    error: Optional[str] = None
    active_tab: str
    stats: Optional[DashboardStats] = None
    shipments: List[ShipmentRow] = []
    users: List[UserResponse] = []
    methods: List[ShippingMethodResponse] = []
    notifications: List[str] = []
    selected: Optional[ShipmentRow] = None


class UserDashboardView(BaseModel):
    state: str
    error: Optional[str] = None
    active_tab: str
    shipments: List[ShipmentRow] = []
    methods: List[ShippingMethodResponse] = []
    notifications: List[str] = []
    selected: Optional[ShipmentRow] = None
    pending_cancel: Optional[ShipmentRow] = None


class AdminSettingsView(BaseModel):
    state: str
    error: Optional[str] = None
    users: List[UserResponse] = []
    methods: List[ShippingMethodResponse] = []


class UserSettingsView(BaseModel):
    state: str
    error: Optional[str] = None
    success: Optional[str] = None
    profile: Optional[UserResponse] = None
    access_token: Optional[str] = None


class AdminCreateShipment(ShipmentDraft):
    """Admin create form; the sender is chosen from the user list."""


class StatusChange(BaseModel):
    status: str


class MethodEdit(BaseModel):
    name: Optional[str] = None
    cost: Optional[float] = None


class UserEdit(BaseModel):
    email: Optional[str] = None
    address: Optional[str] = None
    priv: Optional[bool] = None


class ProfileEdit(BaseModel):
    email: Optional[str] = None
    address: Optional[str] = None


class PasswordEdit(BaseModel):
    new_password: str = ""
    confirm_password: str = ""
