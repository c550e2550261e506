"""
Session dependencies for FastAPI.

Turns a bearer token into a signed-in session and the session into the
User profile row it belongs to.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from postal.app.core.exceptions import AuthenticationError, StorageError
from postal.app.core.jwt import decode_access_token
from postal.app.core.redis_client import get_redis
from postal.app.core.token_revocation import is_token_revoked, are_account_tokens_revoked
from postal.app.db.session import get_db
from postal.app.models.user import User
from postal.app.services.user_service import UserService

# auto_error=False so a missing header becomes our AuthenticationError
security = HTTPBearer(auto_error=False)


@dataclass
class SessionContext:
    """A resolved session: the raw token, its email and the profile row."""
    token: str
    email: str
    user: User

    @property
    def is_admin(self) -> bool:
        return bool(self.user.priv)


async def get_session_email(token: Optional[str], redis_client) -> str:
    """
    Validate a session token and return the email it was issued for.

    Security checks:
    1. Validates JWT signature and expiry
    2. Checks the token has not been signed out
    3. Checks the account's tokens have not all been revoked

    Raises:
        AuthenticationError: 401 with a redirect to the login page
    """
    if not token:
        raise AuthenticationError("Not signed in")

    payload = decode_access_token(token)
    if payload is None or not payload.get("sub"):
        raise AuthenticationError("Could not validate credentials")

    email = payload["sub"]

    if await is_token_revoked(redis_client, token):
        raise AuthenticationError("Session has been signed out")

    if await are_account_tokens_revoked(redis_client, email):
        raise AuthenticationError("Session has been revoked")

    return email


async def resolve_identity(db: AsyncSession, email: str) -> User:
    """
    Map a session email onto its User row.

    A valid session with no profile row is fatal for the request.
    """
    user = await UserService(db).get_by_email(email)
    if user is None:
        raise StorageError("User not found", status_code=status.HTTP_404_NOT_FOUND)
    return user


async def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
    redis_client=Depends(get_redis),
) -> SessionContext:
    """FastAPI dependency resolving the request's session to a SessionContext."""
    token = credentials.credentials if credentials else None
    email = await get_session_email(token, redis_client)
    user = await resolve_identity(db, email)
    return SessionContext(token=token, email=email, user=user)
