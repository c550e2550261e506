"""
Admin dashboard controller.

Holds every shipment, user and shipping method, computes the aggregate
counters and runs the admin's shipment and method edits.
"""

import enum
from typing import Any, Dict, List, Optional

from postal.app.core.exceptions import InsufficientPermissionsError
from postal.app.dashboards.base import ShipmentView
from postal.app.dashboards.filters import ShipmentFilter
from postal.app.dashboards.validation import validate_method_edit, validate_shipment_draft
from postal.app.models.shipment_enums import ShipmentStatus
from postal.app.schemas.dashboard import AdminDashboardView, DashboardStats
from postal.app.schemas.shipment import ShipmentDraft, ShipmentRow
from postal.app.schemas.shipping_method import ShippingMethodResponse
from postal.app.schemas.user import UserResponse
from postal.app.services.change_feed import ChangeFeed, shipment_feed
from postal.app.services.shipment_service import ShipmentService
from postal.app.services.shipping_method_service import ShippingMethodService
from postal.app.services.user_service import UserService


class AdminTab(str, enum.Enum):
    DASHBOARD = "dashboard"
    SHIPMENTS = "shipments"
    USERS = "users"
    SETTINGS = "settings"


class AdminDashboard(ShipmentView):

    listener_scope = None

    def __init__(self, session_factory, viewer, feed: ChangeFeed = shipment_feed):
        if not viewer.priv:
            raise InsufficientPermissionsError()
        super().__init__(session_factory, viewer, feed)
        self.users: List[UserResponse] = []
        self.methods: List[ShippingMethodResponse] = []
        self.active_tab = AdminTab.DASHBOARD
        self.filter = ShipmentFilter()

    async def fetch(self) -> None:
        shipments, users, methods = await self.gather(
            lambda db: ShipmentService(db, self.feed).list_all(),
            lambda db: UserService(db).list_all(),
            lambda db: ShippingMethodService(db).list_all(),
        )
        self.shipments = shipments
        self.users = [UserResponse.model_validate(u) for u in users]
        self.methods = [ShippingMethodResponse.model_validate(m) for m in methods]

    def select_tab(self, tab: str) -> AdminTab:
        self.active_tab = AdminTab(tab)
        return self.active_tab

    def stats(self) -> DashboardStats:
        costs = {method.id: method.cost for method in self.methods}
        return DashboardStats(
            total_shipments=len(self.shipments),
            pending_shipments=sum(1 for s in self.shipments if s.status == ShipmentStatus.PENDING.value),
            delivered_shipments=sum(1 for s in self.shipments if s.status == ShipmentStatus.DELIVERED.value),
            total_users=len(self.users),
            total_revenue=sum(costs.get(s.method_id, 0) for s in self.shipments),
        )

    def set_filter(self, shipment_filter: ShipmentFilter) -> None:
        self.filter = shipment_filter

    def filtered_shipments(self, shipment_filter: Optional[ShipmentFilter] = None) -> List[ShipmentRow]:
        return (shipment_filter or self.filter).apply(self.shipments)

    def select(self, shipment_id: int) -> Optional[ShipmentRow]:
        self.selected = next((s for s in self.shipments if s.id == shipment_id), None)
        return self.selected

    async def update_status(self, shipment_id: int, status: str) -> Optional[ShipmentRow]:
        """Set any of the eight statuses; there is no transition graph."""
        async def action():
            row = await self.with_session(lambda db: ShipmentService(db, self.feed).update_status(shipment_id, status))
            self.replace_shipment(row)
            return row
        return await self.run(action)

    async def create_shipment(self, draft: ShipmentDraft) -> Optional[ShipmentRow]:
        """Create a pending shipment on behalf of the chosen sender."""
        async def action():
            fields = validate_shipment_draft(draft)
            row = await self.with_session(lambda db: ShipmentService(db, self.feed).create(fields))
            self.prepend_shipment(row)
            return row
        return await self.run(action)

    async def update_shipping_method(self, method_id: int, fields: Dict[str, Any]) -> Optional[ShippingMethodResponse]:
        """Save one edited method field (name or cost)."""
        async def action():
            checked = validate_method_edit(fields)
            method = await self.with_session(lambda db: ShippingMethodService(db).update(method_id, checked))
            updated = ShippingMethodResponse.model_validate(method)
            self.methods = [updated if m.id == method_id else m for m in self.methods]
            return updated
        return await self.run(action)

    def snapshot(self, shipment_filter: Optional[ShipmentFilter] = None) -> AdminDashboardView:
        ready = self.loaded
        return AdminDashboardView(
            state=self.state.value,
            error=self.error,
            active_tab=self.active_tab.value,
            stats=self.stats() if ready else None,
            shipments=self.filtered_shipments(shipment_filter) if ready else [],
            users=self.users if ready else [],
            methods=self.methods if ready else [],
            notifications=self.notifications,
            selected=self.selected,
        )
