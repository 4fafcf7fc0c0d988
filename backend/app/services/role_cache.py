"""
Role cache backed by Redis.

``resolve_role`` runs on every admin-gated request, so resolved roles are
cached per email. The Directory Store stays authoritative: a Redis failure
is logged and treated as a miss, and every role mutation drops the entry.

Dropping an entry leaves a short-lived marker in its place and entries are
only ever populated with ``SET NX``. A read that loaded the old role before
the mutation committed therefore cannot write it back once the mutation
invalidated the key.
"""

import logging
from typing import Optional

from redis.exceptions import RedisError

from backend.app.core.config import settings
from backend.app.models.enums import UserRole

logger = logging.getLogger("parcels.cache")

# Redis key prefix for cached roles
ROLE_KEY_PREFIX = "role:"

# Placeholder left by invalidate(); read as a miss
INVALIDATED = "-"


class RoleCache:
    
    def __init__(self, redis, ttl_seconds: Optional[int] = None, invalidation_seconds: Optional[int] = None):
        self.redis = redis
        self.ttl_seconds = ttl_seconds or settings.role_cache_ttl_seconds
        self.invalidation_seconds = invalidation_seconds or settings.role_cache_invalidation_seconds
    
    @staticmethod
    def _key(email: str) -> str:
        return f"{ROLE_KEY_PREFIX}{email}"
    
    async def get(self, email: str) -> Optional[UserRole]:
        try:
            value = await self.redis.get(self._key(email))
        except RedisError as exc:
            logger.warning("Role cache read failed for %s: %s", email, exc)
            return None
        
        if value is None:
            return None
        if isinstance(value, bytes):
            value = value.decode()
        try:
            return UserRole(value)
        except ValueError:
            return None
    
    async def set(self, email: str, role: UserRole) -> None:
        """Populate after a store read; never overwrites an existing entry or marker."""
        try:
            await self.redis.set(self._key(email), role.value, ex=self.ttl_seconds, nx=True)
        except RedisError as exc:
            logger.warning("Role cache write failed for %s: %s", email, exc)
    
    async def invalidate(self, email: str) -> None:
        try:
            await self.redis.set(self._key(email), INVALIDATED, ex=self.invalidation_seconds)
        except RedisError as exc:
            logger.warning("Role cache invalidation failed for %s: %s", email, exc)
