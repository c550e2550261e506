"""
Token revocation using Redis.

Signing out blacklists the session token; deleting a user blacklists
every token issued for that email. Entries expire together with the
longest possible token lifetime.
"""

import logging
from redis.exceptions import RedisError
from postal.app.core.config import settings

logger = logging.getLogger("postal.auth")

TOKEN_BLACKLIST_PREFIX = "blacklist:token:"
ACCOUNT_REVOKED_PREFIX = "account:revoked:"


def _ttl_seconds() -> int:
    return settings.access_token_expire_minutes * 60


async def revoke_token(redis_client, token: str, email: str) -> bool:
    """
    Revoke a specific session token.

    Returns:
        True if successfully revoked, False if Redis was unreachable
    """
    try:
        await redis_client.setex(f"{TOKEN_BLACKLIST_PREFIX}{token}", _ttl_seconds(), email)
        return True
    except RedisError as e:
        logger.warning("Error revoking token: %s", e, extra={"email": email})
        return False


async def is_token_revoked(redis_client, token: str) -> bool:
    """
    Check if a token has been revoked.

    If Redis is down the request is allowed through (availability over
    strictness); the token still expires on its own.
    """
    try:
        return await redis_client.exists(f"{TOKEN_BLACKLIST_PREFIX}{token}") > 0
    except RedisError as e:
        logger.warning("Error checking token revocation: %s", e)
        return False


async def revoke_account_tokens(redis_client, email: str) -> bool:
    """Revoke every token issued for an email, used when its user is deleted."""
    try:
        await redis_client.setex(f"{ACCOUNT_REVOKED_PREFIX}{email}", _ttl_seconds(), "1")
        return True
    except RedisError as e:
        logger.warning("Error revoking tokens for %s: %s", email, e)
        return False


async def are_account_tokens_revoked(redis_client, email: str) -> bool:
    try:
        return await redis_client.exists(f"{ACCOUNT_REVOKED_PREFIX}{email}") > 0
    except RedisError as e:
        logger.warning("Error checking account revocation for %s: %s", email, e)
        return False


async def clear_account_revocation(redis_client, email: str) -> bool:
    """Clear the account-wide flag, used when an email signs up again."""
    try:
        await redis_client.delete(f"{ACCOUNT_REVOKED_PREFIX}{email}")
        return True
    except RedisError as e:
        logger.warning("Error clearing revocation for %s: %s", email, e)
        return False
