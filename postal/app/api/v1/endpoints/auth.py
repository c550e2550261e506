"""
Authentication API endpoints.

Sign-up, sign-in, sign-out and the current user. The login response
names the dashboard matching the user's privilege flag.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from postal.app.core.dependencies import SessionContext, get_session_email, security
from postal.app.core.guards import require_user
from postal.app.core.jwt import create_access_token
from postal.app.core.redis_client import get_redis
from postal.app.core.token_revocation import clear_account_revocation, revoke_token
from postal.app.db.session import get_db
from postal.app.models.user import User
from postal.app.schemas.auth import LoginRequest, SignUpRequest, TokenResponse
from postal.app.schemas.user import UserResponse
from postal.app.services.account_service import AccountService

router = APIRouter(prefix="/auth", tags=["Authentication"])
logger = logging.getLogger("postal.auth")


def dashboard_for(user: User) -> str:
    return "/admin" if user.priv else "/user"


def issue_token(user: User) -> TokenResponse:
    access_token = create_access_token(data={"sub": user.email, "user_id": user.id})
    return TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        email=user.email,
        priv=user.priv,
        redirect=dashboard_for(user),
    )


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignUpRequest,
    db: AsyncSession = Depends(get_db),
    redis_client=Depends(get_redis),
):
    """
    Register a new regular user.

    The privilege flag is always False; admins are made by other admins.
    """
    user = await AccountService(db).sign_up(data.email, data.password, data.address)
    await clear_account_revocation(redis_client, user.email)
    return issue_token(user)


@router.post("/login", response_model=TokenResponse)
async def login(credentials: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Check credentials and return a session token plus the dashboard to open."""
    _, user = await AccountService(db).sign_in(credentials.email, credentials.password)
    logger.info("Login succeeded", extra={"user_id": user.id})
    return issue_token(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    redis_client=Depends(get_redis),
):
    """Sign out: the presented token stops working immediately."""
    token = credentials.credentials if credentials else None
    email = await get_session_email(token, redis_client)
    await revoke_token(redis_client, token, email)


@router.get("/me", response_model=UserResponse)
async def me(session: SessionContext = Depends(require_user)):
    return UserResponse.model_validate(session.user)
