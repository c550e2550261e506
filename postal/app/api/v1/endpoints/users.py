"""
User management API endpoints (admin only).
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from postal.app.core.dependencies import SessionContext
from postal.app.core.exceptions import StorageError
from postal.app.core.guards import require_admin
from postal.app.core.redis_client import get_redis
from postal.app.core.token_revocation import revoke_account_tokens
from postal.app.db.session import get_db
from postal.app.schemas.user import UserResponse, UserUpdate
from postal.app.services.account_service import AccountService
from postal.app.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Admin - Users"])


@router.get("", response_model=List[UserResponse])
async def list_users(
    priv: Optional[bool] = Query(None, description="Only admins (true) or only regular users (false)"),
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List users, newest first."""
    service = UserService(db)
    users = await service.list_all() if priv is None else await service.get_by_privilege(priv)
    return [UserResponse.model_validate(u) for u in users]


@router.get("/by-email", response_model=UserResponse)
async def get_user_by_email(
    email: str = Query(...),
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    user = await UserService(db).get_by_email(email)
    if user is None:
        raise StorageError("User not found", status_code=status.HTTP_404_NOT_FOUND)
    return UserResponse.model_validate(user)


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int = Path(...),
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    user = await UserService(db).get_by_id(user_id)
    if user is None:
        raise StorageError("User not found", status_code=status.HTTP_404_NOT_FOUND)
    return UserResponse.model_validate(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int = Path(...),
    data: UserUpdate = ...,
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Edit a user; setting ``priv`` grants or removes admin rights."""
    user = await AccountService(db).update_profile(user_id, data.model_dump(exclude_unset=True))
    return UserResponse.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_user(
    user_id: int = Path(...),
    admin: SessionContext = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
    redis_client=Depends(get_redis),
):
    """Delete a user profile; their shipments remain with no sender."""
    service = UserService(db)
    user = await service.get_by_id(user_id)
    if user is None:
        return
    email = user.email
    await service.delete(user_id)
    await revoke_account_tokens(redis_client, email)
