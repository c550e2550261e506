"""
Shipment service.

CRUD on the shipments table. The list queries and status updates return
joined rows carrying sender and method summaries; get_by_id and create
return plain rows, as does the change feed.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from postal.app.core.exceptions import ValidationError
from postal.app.db.repository import CrudRepository
from postal.app.models.shipment import Shipment
from postal.app.models.shipment_enums import ShipmentStatus, is_known_status
from postal.app.schemas.shipment import MethodSummary, SenderSummary, ShipmentRow
from postal.app.services.change_feed import ChangeEvent, ChangeFeed, UPDATE, shipment_feed

logger = logging.getLogger("postal.shipments")


def plain_row(shipment: Shipment) -> ShipmentRow:
    return ShipmentRow(
        id=shipment.id,
        created_at=shipment.created_at,
        status=shipment.status,
        to_address=shipment.to_address,
        weight=shipment.weight,
        sender_id=shipment.sender_id,
        method_id=shipment.method_id,
    )


def joined_row(shipment: Shipment) -> ShipmentRow:
    row = plain_row(shipment)
    if shipment.sender is not None:
        row.sender = SenderSummary.model_validate(shipment.sender)
    if shipment.method is not None:
        row.method = MethodSummary.model_validate(shipment.method)
    return row


def _check_status(value: str) -> str:
    if isinstance(value, ShipmentStatus):
        return value.value
    if not is_known_status(value):
        raise ValidationError(f"Unknown shipment status '{value}'", field="status")
    return value


class ShipmentService:

    def __init__(self, db: AsyncSession, feed: ChangeFeed = shipment_feed):
        self.repository = CrudRepository(db, Shipment)
        self.feed = feed

    def _joined(self):
        return select(Shipment).options(joinedload(Shipment.sender), joinedload(Shipment.method))

    async def _fetch_joined(self, *criteria) -> List[ShipmentRow]:
        query = self.repository.newest_first(self._joined().where(*criteria))
        return [joined_row(s) for s in await self.repository.fetch_all(query)]

    async def list_all(self) -> List[ShipmentRow]:
        return await self._fetch_joined()

    async def get_by_user(self, user_id: int) -> List[ShipmentRow]:
        return await self._fetch_joined(Shipment.sender_id == user_id)

    async def get_by_status(self, status: str) -> List[ShipmentRow]:
        return await self._fetch_joined(Shipment.status == _check_status(status))

    async def get_by_id(self, shipment_id: int) -> Optional[ShipmentRow]:
        shipment = await self.repository.get_by_id(shipment_id)
        return plain_row(shipment) if shipment is not None else None

    async def create(self, fields: Dict[str, Any]) -> ShipmentRow:
        fields = dict(fields)
        fields["status"] = _check_status(fields.get("status", ShipmentStatus.PENDING.value))
        shipment = await self.repository.create(fields)
        return plain_row(shipment)

    async def update(self, shipment_id: int, fields: Dict[str, Any]) -> ShipmentRow:
        if "status" in fields:
            fields = {**fields, "status": _check_status(fields["status"])}
        shipment = await self.repository.update(shipment_id, fields)
        row = plain_row(shipment)
        self._publish(row)
        return row

    async def delete(self, shipment_id: int) -> None:
        await self.repository.delete(shipment_id)

    async def update_status(self, shipment_id: int, status: str) -> ShipmentRow:
        """
        Set only the status field and return the joined row.

        Every vocabulary status is accepted regardless of the current one.
        """
        status = _check_status(status)
        await self.repository.update(shipment_id, {"status": status})
        query = self._joined().where(Shipment.id == shipment_id).execution_options(populate_existing=True)
        shipment = (await self.repository.fetch_all(query))[0]
        row = joined_row(shipment)
        logger.info("Shipment status changed", extra={"shipment_id": shipment_id, "status": status})
        self._publish(plain_row(shipment))
        return row

    def _publish(self, row: ShipmentRow) -> None:
        self.feed.publish(ChangeEvent(
            table=Shipment.__tablename__,
            event=UPDATE,
            row={
                "id": row.id,
                "created_at": row.created_at.isoformat(),
                "status": row.status,
                "to_address": row.to_address,
                "weight": row.weight,
                "sender_id": row.sender_id,
                "method_id": row.method_id,
            },
        ))
