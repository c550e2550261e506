"""
Shipping method service: CRUD on the method table plus a cost-range query.
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from postal.app.db.repository import CrudRepository
from postal.app.models.shipping_method import ShippingMethod


class ShippingMethodService:

    def __init__(self, db: AsyncSession):
        self.repository = CrudRepository(db, ShippingMethod)

    async def list_all(self) -> List[ShippingMethod]:
        return await self.repository.list_all()

    async def get_by_id(self, method_id: int) -> Optional[ShippingMethod]:
        return await self.repository.get_by_id(method_id)

    async def create(self, fields: Dict[str, Any]) -> ShippingMethod:
        return await self.repository.create(fields)

    async def update(self, method_id: int, fields: Dict[str, Any]) -> ShippingMethod:
        return await self.repository.update(method_id, fields)

    async def delete(self, method_id: int) -> None:
        # Shipments still pointing at the method are left with a null reference
        await self.repository.delete(method_id)

    async def get_by_cost_range(self, min_cost: float, max_cost: float) -> List[ShippingMethod]:
        """Methods with min_cost <= cost <= max_cost, cheapest first."""
        query = (
            select(ShippingMethod)
            .where(ShippingMethod.cost >= min_cost, ShippingMethod.cost <= max_cost)
            .order_by(ShippingMethod.cost.asc(), ShippingMethod.id.asc())
        )
        return await self.repository.fetch_all(query)
