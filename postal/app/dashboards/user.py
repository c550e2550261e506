"""
User dashboard controller.

Shows the signed-in user's own shipments grouped into lifecycle tabs,
and handles self-service creation, cancellation and tracking lookups.
"""

from typing import List, Optional

from postal.app.dashboards.base import ShipmentView
from postal.app.dashboards.filters import LifecycleBucket, in_bucket
from postal.app.dashboards.validation import validate_shipment_draft
from postal.app.models.shipment_enums import ShipmentStatus
from postal.app.schemas.dashboard import UserDashboardView
from postal.app.schemas.shipment import ShipmentDraft, ShipmentRow
from postal.app.schemas.shipping_method import ShippingMethodResponse
from postal.app.services.change_feed import ChangeFeed, shipment_feed
from postal.app.services.shipment_service import ShipmentService
from postal.app.services.shipping_method_service import ShippingMethodService


class UserDashboard(ShipmentView):

    def __init__(self, session_factory, viewer, feed: ChangeFeed = shipment_feed):
        super().__init__(session_factory, viewer, feed)
        self.listener_scope = viewer.id
        self.methods: List[ShippingMethodResponse] = []
        self.active_tab = LifecycleBucket.ACTIVE
        self.pending_cancel: Optional[ShipmentRow] = None

    async def fetch(self) -> None:
        shipments, methods = await self.gather(
            lambda db: ShipmentService(db, self.feed).get_by_user(self.viewer.id),
            lambda db: ShippingMethodService(db).list_all(),
        )
        self.shipments = shipments
        self.methods = [ShippingMethodResponse.model_validate(m) for m in methods]

    def select_tab(self, tab: str) -> LifecycleBucket:
        self.active_tab = LifecycleBucket(tab)
        return self.active_tab

    def bucket_shipments(self, bucket: Optional[LifecycleBucket] = None) -> List[ShipmentRow]:
        bucket = LifecycleBucket(bucket) if bucket else self.active_tab
        return [row for row in self.shipments if in_bucket(row, bucket)]

    async def create_shipment(self, draft: ShipmentDraft) -> Optional[ShipmentRow]:
        """Create a pending shipment sent by the viewer, whatever the form says."""
        async def action():
            own = draft.model_copy(update={"sender_id": self.viewer.id})
            fields = validate_shipment_draft(own, require_sender=False)
            row = await self.with_session(lambda db: ShipmentService(db, self.feed).create(fields))
            self.prepend_shipment(row)
            return row
        return await self.run(action)

    def request_cancel(self, shipment_id: int) -> Optional[ShipmentRow]:
        """First step of the cancel flow: stage the shipment for confirmation."""
        self.pending_cancel = next((s for s in self.shipments if s.id == shipment_id), None)
        if self.pending_cancel is None:
            self.fail("Shipment not found")
        return self.pending_cancel

    def abort_cancel(self) -> None:
        self.pending_cancel = None

    async def confirm_cancel(self) -> Optional[ShipmentRow]:
        """Cancel the staged shipment; any prior status may be cancelled."""
        staged = self.pending_cancel
        if staged is None:
            return None

        async def action():
            row = await self.with_session(
                lambda db: ShipmentService(db, self.feed).update_status(staged.id, ShipmentStatus.CANCELLED.value)
            )
            self.replace_shipment(row)
            self.pending_cancel = None
            self.notify(f"Shipment #{staged.id} has been cancelled")
            return row
        return await self.run(action)

    async def track(self, shipment_id: int) -> Optional[ShipmentRow]:
        """Look up any shipment by id for the details view; ownership is not checked."""
        async def action():
            row = await self.with_session(lambda db: ShipmentService(db, self.feed).get_by_id(shipment_id))
            if row is None:
                self.fail("Shipment not found")
                return None
            self.selected = row
            return row

        result = await self.run(action)
        if result is None and self.error is not None:
            # Storage failures on lookup read as a miss too
            self.error = "Shipment not found"
        return result

    def snapshot(self) -> UserDashboardView:
        ready = self.loaded
        return UserDashboardView(
            state=self.state.value,
            error=self.error,
            active_tab=self.active_tab.value,
            shipments=self.bucket_shipments() if ready else [],
            methods=self.methods if ready else [],
            notifications=self.notifications,
            selected=self.selected,
            pending_cancel=self.pending_cancel,
        )
