"""
Shipping method API endpoints.

Any signed-in user can read the catalogue; only admins change it.
"""

from typing import List

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from postal.app.core.dependencies import SessionContext
from postal.app.core.exceptions import StorageError, ValidationError
from postal.app.core.guards import require_admin, require_user
from postal.app.db.session import get_db
from postal.app.schemas.shipping_method import (
    ShippingMethodCreate, ShippingMethodResponse, ShippingMethodUpdate
)
from postal.app.services.shipping_method_service import ShippingMethodService

router = APIRouter(prefix="/methods", tags=["Shipping Methods"])


@router.get("", response_model=List[ShippingMethodResponse])
async def list_methods(
    session: SessionContext = Depends(require_user),
    db: AsyncSession = Depends(get_db)
):
    return [ShippingMethodResponse.model_validate(m) for m in await ShippingMethodService(db).list_all()]


@router.get("/cost-range", response_model=List[ShippingMethodResponse])
async def methods_by_cost_range(
    min_cost: float = Query(..., ge=0),
    max_cost: float = Query(..., ge=0),
    session: SessionContext = Depends(require_user),
    db: AsyncSession = Depends(get_db)
):
    """Methods whose cost lies in [min_cost, max_cost], cheapest first."""
    if min_cost > max_cost:
        raise ValidationError("min_cost must not exceed max_cost", field="min_cost")
    methods = await ShippingMethodService(db).get_by_cost_range(min_cost, max_cost)
    return [ShippingMethodResponse.model_validate(m) for m in methods]


@router.get("/{method_id}", response_model=ShippingMethodResponse)
async def get_method(
    method_id: int = Path(...),
    session: SessionContext = Depends(require_user),
    db: AsyncSession = Depends(get_db)
):
    method = await ShippingMethodService(db).get_by_id(method_id)
    if method is None:
        raise StorageError("Shipping method not found", status_code=status.HTTP_404_NOT_FOUND)
    return ShippingMethodResponse.model_validate(method)


@router.post("", response_model=ShippingMethodResponse, status_code=status.HTTP_201_CREATED)
async def create_method(
    data: ShippingMethodCreate,
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    method = await ShippingMethodService(db).create(data.model_dump())
    return ShippingMethodResponse.model_validate(method)


@router.patch("/{method_id}", response_model=ShippingMethodResponse)
async def update_method(
    method_id: int = Path(...),
    data: ShippingMethodUpdate = ...,
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    method = await ShippingMethodService(db).update(method_id, data.model_dump(exclude_unset=True))
    return ShippingMethodResponse.model_validate(method)


@router.delete("/{method_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_method(
    method_id: int = Path(...),
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a method even if shipments still reference it."""
    await ShippingMethodService(db).delete(method_id)
