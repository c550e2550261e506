"""
Shared view-controller machinery.

A view moves loading -> ready | error. Fetches run in parallel, each in its
own session; the first failure puts the whole view in error. Actions catch
AppException at the controller boundary and keep only the latest message.
"""

import asyncio
import enum
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from postal.app.core.exceptions import AppException
from postal.app.models.user import User
from postal.app.schemas.shipment import ShipmentRow
from postal.app.services.change_feed import ChangeFeed, shipment_feed

logger = logging.getLogger("postal.dashboards")


class ViewState(str, enum.Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class View:
    """
    Base view controller.

    Args:
        session_factory: Opens a fresh AsyncSession per fetch or action
        viewer: The resolved signed-in user
        feed: Change feed the shipment service publishes to
    """

    def __init__(self, session_factory: async_sessionmaker, viewer: User, feed: ChangeFeed = shipment_feed):
        self.session_factory = session_factory
        self.viewer = viewer
        self.feed = feed
        self.loaded = False
        self.error: Optional[str] = None

    @property
    def state(self) -> ViewState:
        if self.error is not None:
            return ViewState.ERROR
        if not self.loaded:
            return ViewState.LOADING
        return ViewState.READY

    def fail(self, message: str) -> None:
        if self.error is not None:
            logger.debug("Replacing displayed error", extra={"previous": self.error})
        self.error = message

    def clear_error(self) -> None:
        self.error = None

    async def with_session(self, operation: Callable[[AsyncSession], Awaitable[Any]]) -> Any:
        async with self.session_factory() as db:
            return await operation(db)

    async def gather(self, *operations: Callable[[AsyncSession], Awaitable[Any]]) -> List[Any]:
        return await asyncio.gather(*(self.with_session(op) for op in operations))

    async def run(self, action: Callable[[], Awaitable[Any]]) -> Any:
        """Run an action, storing any AppException's message as the view error."""
        try:
            return await action()
        except AppException as exc:
            logger.info("View action failed", extra={"view": type(self).__name__, "reason": exc.message})
            self.fail(exc.message)
            return None

    async def load(self) -> ViewState:
        self.loaded = False
        self.error = None
        await self.run(self.fetch)
        self.loaded = self.error is None
        return self.state

    async def reload(self) -> ViewState:
        return await self.load()

    async def fetch(self) -> None:
        raise NotImplementedError


class ShipmentView(View):
    """A view holding a local list of shipments and a notification list."""

    # Sender filter for live updates; None receives every shipment
    listener_scope: Optional[int] = None

    def __init__(self, session_factory: async_sessionmaker, viewer: User, feed: ChangeFeed = shipment_feed):
        super().__init__(session_factory, viewer, feed)
        self.shipments: List[ShipmentRow] = []
        self.notifications: List[str] = []
        self.selected: Optional[ShipmentRow] = None

    def notify(self, message: str) -> None:
        self.notifications.insert(0, message)

    def replace_shipment(self, row: ShipmentRow) -> None:
        self.shipments = [row if s.id == row.id else s for s in self.shipments]
        if self.selected is not None and self.selected.id == row.id:
            self.selected = row

    def prepend_shipment(self, row: ShipmentRow) -> None:
        self.shipments = [row] + self.shipments

    def apply_pushed_update(self, payload: Dict[str, Any]) -> ShipmentRow:
        """
        Merge a live-update payload.

        The pushed row carries no sender or method summary, so the patched
        row shows them as Unknown until the next full fetch.
        """
        row = ShipmentRow.model_validate(payload)
        self.notify(f"Shipment #{row.id} status updated to {row.status}")
        self.replace_shipment(row)
        return row
