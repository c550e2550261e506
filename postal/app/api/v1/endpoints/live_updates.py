"""
Live shipment updates over WebSocket.

Browsers cannot set an Authorization header on a WebSocket, so the session
token travels as the ``token`` query parameter. The connection mounts the
viewer's dashboard (admin: every shipment, user: their own) with its
update listener and forwards each update the listener applies.

Messages:
    ``{"event": "subscribed", "state": ..., "error": ...}`` once mounted
    ``{"event": "update", "notification": ..., "shipment": ...}`` per change
"""

import contextlib
import logging

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect
from sqlalchemy.ext.asyncio import async_sessionmaker

from postal.app.core.dependencies import get_session_email, resolve_identity
from postal.app.core.exceptions import AppException
from postal.app.core.redis_client import get_redis
from postal.app.dashboards.admin import AdminDashboard
from postal.app.dashboards.listener import ShipmentUpdateListener
from postal.app.dashboards.user import UserDashboard
from postal.app.db.session import get_session_factory
from postal.app.schemas.shipment import ShipmentRow
from postal.app.services.change_feed import ChangeFeed, get_change_feed

router = APIRouter(tags=["Live Updates"])
logger = logging.getLogger("postal.live")

# Application close codes: 4000 + the HTTP status the request would get
CLOSE_UNAUTHORIZED = 4401
CLOSE_NOT_FOUND = 4404


@router.websocket("/ws/shipments")
async def shipment_updates(
    websocket: WebSocket,
    token: str = Query(""),
    redis_client=Depends(get_redis),
    session_factory: async_sessionmaker = Depends(get_session_factory),
    feed: ChangeFeed = Depends(get_change_feed),
):
    await websocket.accept()
    try:
        email = await get_session_email(token, redis_client)
        async with session_factory() as db:
            viewer = await resolve_identity(db, email)
    except AppException as exc:
        code = CLOSE_UNAUTHORIZED if exc.status_code == 401 else CLOSE_NOT_FOUND
        await websocket.close(code=code, reason=exc.message)
        return

    dashboard_class = AdminDashboard if viewer.priv else UserDashboard
    dashboard = dashboard_class(session_factory, viewer, feed)
    await dashboard.load()

    async def forward(row: ShipmentRow, notification: str) -> None:
        await websocket.send_json({
            "event": "update",
            "notification": notification,
            "shipment": row.model_dump(mode="json"),
        })

    async with ShipmentUpdateListener(dashboard, on_update=forward):
        await websocket.send_json({"event": "subscribed", "state": dashboard.state.value, "error": dashboard.error})
        logger.info("Live updates connected", extra={"user_id": viewer.id, "all_rows": viewer.priv})
        # Incoming frames are ignored; this only waits for the disconnect
        with contextlib.suppress(WebSocketDisconnect):
            while True:
                await websocket.receive_text()

    logger.info("Live updates disconnected", extra={"user_id": viewer.id})
