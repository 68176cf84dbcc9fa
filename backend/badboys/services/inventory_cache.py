"""Inventory read cache keyed by user id and inventory version.

Every method is best-effort: a Redis failure is logged and treated like a
miss, so the cache only ever changes latency, never results. Entries are
addressed by version, so a refill with an old snapshot lands under a key
that is never read again once the inventory has moved on.
"""

import json
import logging

import redis

logger = logging.getLogger(__name__)

INVENTORY_CACHE_TTL = 300  # 5 minutes
INVENTORY_CACHE_PREFIX = "inventory:"


def _inventory_cache_key(user_id: str, version: int) -> str:
    return f"{INVENTORY_CACHE_PREFIX}{user_id}:{version}"


class InventoryCache:
    """Redis-backed cache of serialized inventories."""

    def __init__(self, client, ttl: int = INVENTORY_CACHE_TTL):
        self.client = client
        self.ttl = ttl

    def get(self, user_id: str, version: int) -> dict | None:
        try:
            cached = self.client.get(_inventory_cache_key(user_id, version))
            if cached is not None:
                return json.loads(cached)
        except (redis.RedisError, ValueError) as e:
            logger.warning(f"Inventory cache read error for {user_id}: {e}")
        return None

    def set(self, user_id: str, payload: dict) -> None:
        key = _inventory_cache_key(user_id, payload["inventory_version"])
        try:
            self.client.set(key, json.dumps(payload), ex=self.ttl)
        except redis.RedisError as e:
            logger.warning(f"Inventory cache write error for {user_id}: {e}")

    def invalidate(self, user_id: str) -> None:
        """Drop every cached version of a user's inventory."""
        try:
            keys = list(
                self.client.scan_iter(match=f"{INVENTORY_CACHE_PREFIX}{user_id}:*")
            )
            if keys:
                self.client.delete(*keys)
        except redis.RedisError as e:
            logger.warning(f"Failed to invalidate inventory cache for {user_id}: {e}")


class NullInventoryCache:
    """Cache that never holds anything. Used when Redis is not configured."""

    def get(self, user_id: str, version: int) -> dict | None:
        return None

    def set(self, user_id: str, payload: dict) -> None:
        pass

    def invalidate(self, user_id: str) -> None:
        pass


def create_inventory_cache(redis_url: str | None, ttl: int = INVENTORY_CACHE_TTL):
    """Redis cache for ``redis_url``, or the null cache when it is empty."""
    if not redis_url:
        return NullInventoryCache()
    return InventoryCache(redis.from_url(redis_url, decode_responses=True), ttl=ttl)
