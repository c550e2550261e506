"""
Shipment API endpoints.

Admins see and edit every shipment. Regular users create shipments as
themselves, list their own and cancel their own. Tracking by id is open
to any signed-in user.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from postal.app.core.dependencies import SessionContext
from postal.app.core.exceptions import InsufficientPermissionsError, StorageError
from postal.app.core.guards import require_admin, require_user
from postal.app.db.session import get_db
from postal.app.models.shipment_enums import ShipmentStatus
from postal.app.schemas.shipment import ShipmentCreate, ShipmentRow, ShipmentStatusUpdate
from postal.app.services.change_feed import ChangeFeed, get_change_feed
from postal.app.services.shipment_service import ShipmentService

router = APIRouter(prefix="/shipments", tags=["Shipments"])


def _not_found() -> StorageError:
    return StorageError("Shipment not found", status_code=status.HTTP_404_NOT_FOUND)


@router.get("", response_model=List[ShipmentRow])
async def list_shipments(
    status_filter: Optional[ShipmentStatus] = Query(None, alias="status"),
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """All shipments, newest first, with sender and method summaries."""
    service = ShipmentService(db, feed)
    if status_filter is not None:
        return await service.get_by_status(status_filter.value)
    return await service.list_all()


@router.get("/mine", response_model=List[ShipmentRow])
async def my_shipments(
    session: SessionContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
):
    return await ShipmentService(db, feed).get_by_user(session.user.id)


@router.get("/user/{user_id}", response_model=List[ShipmentRow])
async def shipments_for_user(
    user_id: int = Path(...),
    session: SessionContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
):
    if user_id != session.user.id and not session.is_admin:
        raise InsufficientPermissionsError("You can only list your own shipments")
    return await ShipmentService(db, feed).get_by_user(user_id)


@router.get("/{shipment_id}", response_model=ShipmentRow)
async def track_shipment(
    shipment_id: int = Path(...),
    session: SessionContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """Look up any shipment by its id."""
    row = await ShipmentService(db, feed).get_by_id(shipment_id)
    if row is None:
        raise _not_found()
    return row


@router.post("", response_model=ShipmentRow, status_code=status.HTTP_201_CREATED)
async def create_shipment(
    data: ShipmentCreate,
    session: SessionContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """
    Create a pending shipment.

    Admins may name any sender; everyone else is the sender.
    """
    sender_id = data.sender_id if session.is_admin and data.sender_id else session.user.id
    fields = data.model_dump(exclude={"sender_id"})
    fields.update(sender_id=sender_id, status=ShipmentStatus.PENDING.value)
    return await ShipmentService(db, feed).create(fields)


@router.patch("/{shipment_id}/status", response_model=ShipmentRow)
async def update_shipment_status(
    shipment_id: int = Path(...),
    data: ShipmentStatusUpdate = ...,
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """Set any status; subscribers of the change feed are told."""
    service = ShipmentService(db, feed)
    if await service.get_by_id(shipment_id) is None:
        raise _not_found()
    return await service.update_status(shipment_id, data.status.value)


@router.patch("/{shipment_id}/cancel", response_model=ShipmentRow)
async def cancel_shipment(
    shipment_id: int = Path(...),
    session: SessionContext = Depends(require_user),
    db: AsyncSession = Depends(get_db),
    feed: ChangeFeed = Depends(get_change_feed),
):
    """Cancel one of the caller's shipments, whatever its current status."""
    service = ShipmentService(db, feed)
    row = await service.get_by_id(shipment_id)
    if row is None:
        raise _not_found()
    if row.sender_id != session.user.id and not session.is_admin:
        raise InsufficientPermissionsError("You can only cancel your own shipments")
    return await service.update_status(shipment_id, ShipmentStatus.CANCELLED.value)
