"""
Change feed for live updates.

An in-process publish/subscribe channel for row-change events. Services
publish after a successful write; dashboards and websocket connections
subscribe with a server-side filter on table, event and sender.

Delivery is best effort: a subscriber whose queue is full loses the event,
and a closed subscription simply stops receiving. There is no replay.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set

from postal.app.core.config import settings

logger = logging.getLogger("postal.feed")

UPDATE = "update"
INSERT = "insert"


@dataclass(frozen=True)
class ChangeEvent:
    """One changed row as the store saw it, without any joined fields."""
    table: str
    event: str
    row: Dict[str, Any]


@dataclass(eq=False)
class Subscription:
    table: str
    event: str
    sender_id: Optional[int] = None
    queue: asyncio.Queue = field(default_factory=lambda: asyncio.Queue(maxsize=settings.feed_queue_size))
    closed: bool = False
    _feed: Optional["ChangeFeed"] = None

    def matches(self, change: ChangeEvent) -> bool:
        if change.table != self.table or change.event != self.event:
            return False
        return self.sender_id is None or change.row.get("sender_id") == self.sender_id

    async def get(self) -> ChangeEvent:
        return await self.queue.get()

    def close(self) -> None:
        if self._feed is not None:
            self._feed.unsubscribe(self)
        self.closed = True

    def __aiter__(self):
        return self

    async def __anext__(self) -> ChangeEvent:
        if self.closed:
            raise StopAsyncIteration
        return await self.queue.get()


class ChangeFeed:
    def __init__(self):
        self._subscriptions: Set[Subscription] = set()

    def subscribe(self, table: str, event: str = UPDATE, sender_id: Optional[int] = None) -> Subscription:
        """
        Open a subscription.

        Args:
            table: Table whose changes are wanted
            event: Change kind, ``update`` or ``insert``
            sender_id: Only deliver rows whose ``sender_id`` equals this; None for all rows
        """
        subscription = Subscription(table=table, event=event, sender_id=sender_id, _feed=self)
        self._subscriptions.add(subscription)
        logger.debug("Subscribed", extra={"table": table, "event": event, "sender_id": sender_id})
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        self._subscriptions.discard(subscription)

    def publish(self, change: ChangeEvent) -> int:
        """Fan an event out to matching subscribers; returns how many got it."""
        delivered = 0
        for subscription in list(self._subscriptions):
            if not subscription.matches(change):
                continue
            try:
                subscription.queue.put_nowait(change)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(
                    "Dropping change event for slow subscriber",
                    extra={"table": change.table, "row_id": change.row.get("id")}
                )
        return delivered

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)


shipment_feed = ChangeFeed()


def get_change_feed() -> ChangeFeed:
    """FastAPI dependency for the shared shipment change feed."""
    return shipment_feed
