"""JWT token revocation using a Redis blacklist.

Tokens are revoked on logout and, per user, on password reset. Entries
live until the token's natural expiry. With REDIS_ENABLED=false every
check reports "not revoked" and revocations are skipped.
"""

import logging
import time

import redis.asyncio as redis

from charterdesk.config import settings
from charterdesk.utils.redis_client import get_redis

logger = logging.getLogger(__name__)


class TokenRevocation:
    """Manage JWT token revocation with Redis."""

    @staticmethod
    async def revoke_token(token: str, expires_at: float) -> bool:
        """Add token to the revocation list until `expires_at` (unix time)."""
        if not settings.redis_enabled:
            return False

        ttl = int(expires_at - time.time())
        if ttl <= 0:
            # Already expired, nothing to blacklist
            return True

        redis_client = await get_redis()
        try:
            await redis_client.setex(f"revoked:{token}", ttl, str(int(time.time())))
            return True
        except redis.RedisError as e:
            logger.error("Failed to revoke token: %s", e)
            return False

    @staticmethod
    async def is_revoked(token: str) -> bool:
        if not settings.redis_enabled:
            return False

        redis_client = await get_redis()
        try:
            return await redis_client.exists(f"revoked:{token}") > 0
        except redis.RedisError as e:
            logger.error("Failed to check token revocation: %s", e)
            # Fail closed
            return True

    @staticmethod
    async def revoke_all_user_tokens(user_id: str, duration: int | None = None) -> bool:
        """Invalidate every token issued to a user before now.

        The flag outlives the longest refresh token by default.
        """
        if not settings.redis_enabled:
            return False

        duration = duration or settings.refresh_token_expire_days * 86400
        redis_client = await get_redis()
        try:
            await redis_client.setex(
                f"revoked:user:{user_id}", duration, str(int(time.time()))
            )
            return True
        except redis.RedisError as e:
            logger.error("Failed to revoke user tokens: %s", e)
            return False

    @staticmethod
    async def is_user_revoked(user_id: str, issued_at: float | None = None) -> bool:
        """True if the user's tokens were revoked after `issued_at`."""
        if not settings.redis_enabled:
            return False

        redis_client = await get_redis()
        try:
            revoked_at = await redis_client.get(f"revoked:user:{user_id}")
        except redis.RedisError as e:
            logger.error("Failed to check user revocation: %s", e)
            return True
        if revoked_at is None:
            return False
        if issued_at is None:
            return True
        return issued_at <= float(revoked_at)
