"""Redis cache service for resolved permission sets and health checks."""

import json
from typing import Optional, Any
import redis

from adminpanel.core.config import settings


class CacheService:
    """Redis-backed caching service.

    Cache failures are non-fatal: reads degrade to a miss and writes or
    deletes become no-ops, so callers fall back to the database.
    """

    def __init__(self, url: Optional[str] = None, client: Optional[redis.Redis] = None):
        self._url = url or settings.REDIS_URL
        self._client: Optional[redis.Redis] = client

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(
                self._url,
                decode_responses=True,
                max_connections=100,
            )
        return self._client

    def get(self, key: str) -> Optional[str]:
        """Get a cached value by key."""
        try:
            return self.client.get(key)
        except redis.RedisError:
            return None

    def set(self, key: str, value: str, ttl_seconds: int = 600) -> None:
        """Set a cached value with TTL."""
        try:
            self.client.setex(key, ttl_seconds, value)
        except redis.RedisError:
            pass

    def get_json(self, key: str) -> Optional[Any]:
        """Get and parse a JSON cached value."""
        raw = self.get(key)
        if raw:
            try:
                return json.loads(raw)
            except ValueError:
                return None
        return None

    def set_json(self, key: str, value: Any, ttl_seconds: int = 600) -> None:
        """Serialize and cache a JSON value."""
        self.set(key, json.dumps(value, default=str), ttl_seconds)

    def delete(self, key: str) -> None:
        """Delete a cached key."""
        try:
            self.client.delete(key)
        except redis.RedisError:
            pass

    def health_check(self) -> bool:
        """Check if Redis is reachable."""
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False


cache_service = CacheService()
