"""JWT token revocation using a Redis blacklist.

Tokens are blacklisted on logout until their natural expiry. Deactivating
or deleting a user revokes every token issued to them.
"""

import logging
import time

from chemsphere.utils.cache import get_redis

logger = logging.getLogger(__name__)


class TokenRevocation:
    """Manage JWT token revocation with Redis."""

    @staticmethod
    async def revoke_token(token: str, expires_at: float) -> bool:
        """Add token to the revocation list until `expires_at` (unix time)."""
        ttl = int(expires_at - time.time())
        if ttl <= 0:
            # Already expired, nothing to blacklist
            return True

        try:
            redis_client = await get_redis()
            await redis_client.setex(f"revoked:{token}", ttl, str(int(time.time())))
            return True
        except Exception as e:
            logger.error("Failed to revoke token: %s", e)
            return False

    @staticmethod
    async def is_revoked(token: str) -> bool:
        try:
            redis_client = await get_redis()
            exists = await redis_client.exists(f"revoked:{token}")
            return exists > 0
        except Exception as e:
            logger.error("Failed to check token revocation: %s", e)
            # Fail closed
            return True

    @staticmethod
    async def revoke_all_user_tokens(user_id: str, duration: int = 86400) -> bool:
        """Reject every token for `user_id` for `duration` seconds."""
        try:
            redis_client = await get_redis()
            await redis_client.setex(
                f"revoked:user:{user_id}", duration, str(int(time.time()))
            )
            return True
        except Exception as e:
            logger.error("Failed to revoke user tokens: %s", e)
            return False

    @staticmethod
    async def clear_user_revocation(user_id: str) -> bool:
        """Lift a user-wide revocation (e.g. when the account is re-activated)."""
        try:
            redis_client = await get_redis()
            await redis_client.delete(f"revoked:user:{user_id}")
            return True
        except Exception as e:
            logger.error("Failed to clear user revocation: %s", e)
            return False

    @staticmethod
    async def is_user_revoked(user_id: str) -> bool:
        try:
            redis_client = await get_redis()
            exists = await redis_client.exists(f"revoked:user:{user_id}")
            return exists > 0
        except Exception as e:
            logger.error("Failed to check user revocation: %s", e)
            # Fail closed
            return True
