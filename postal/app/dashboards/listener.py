"""
Live-update listener for a shipment dashboard.

Started when a dashboard is mounted and stopped when it goes away. It
listens for update events on the shipments table (all rows for the admin
dashboard, the viewer's own rows for the user dashboard) and patches the
dashboard's local state. If the feed stops delivering, nothing is shown.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from postal.app.dashboards.base import ShipmentView
from postal.app.models.shipment import Shipment
from postal.app.schemas.shipment import ShipmentRow
from postal.app.services.change_feed import ChangeEvent, ChangeFeed, Subscription, UPDATE

logger = logging.getLogger("postal.dashboards")

# Called with the patched row and the notification it produced
UpdateCallback = Callable[[ShipmentRow, str], Awaitable[None]]


class ShipmentUpdateListener:
    """
    Args:
        dashboard: The mounted dashboard to patch
        feed: Feed to subscribe to; defaults to the dashboard's
        on_update: Awaited after each applied update, e.g. to forward it to a client
    """

    def __init__(
        self,
        dashboard: ShipmentView,
        feed: Optional[ChangeFeed] = None,
        on_update: Optional[UpdateCallback] = None,
    ):
        self.dashboard = dashboard
        self.feed = feed or dashboard.feed
        self.on_update = on_update
        self.subscription: Optional[Subscription] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> Subscription:
        if self.subscription is None:
            self.subscription = self.feed.subscribe(
                Shipment.__tablename__, UPDATE, sender_id=self.dashboard.listener_scope
            )
            self._task = asyncio.create_task(self._consume())
        return self.subscription

    def handle(self, change: ChangeEvent) -> ShipmentRow:
        return self.dashboard.apply_pushed_update(change.row)

    async def _consume(self) -> None:
        async for change in self.subscription:
            row = self.handle(change)
            if self.on_update is not None:
                await self.on_update(row, self.dashboard.notifications[0])

    async def stop(self) -> None:
        if self.subscription is not None:
            self.subscription.close()
        task, self._task = self._task, None
        self.subscription = None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                # on_update failed, typically a client that already went away
                logger.warning("Listener ended with a delivery failure", exc_info=True)
        logger.debug("Listener stopped", extra={"view": type(self.dashboard).__name__})

    async def __aenter__(self) -> "ShipmentUpdateListener":
        self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
