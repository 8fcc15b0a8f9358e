"""
Redis cache for per-owner report reads.
Degrades to direct computation whenever Redis is disabled or unreachable.
"""

import logging
import json
from typing import Any, Optional, Callable, Dict
from datetime import datetime, date
from decimal import Decimal

import redis
from redis.exceptions import RedisError, ConnectionError, TimeoutError
from flask import Flask, current_app

logger = logging.getLogger(__name__)


class CacheService:
    """
    Redis-based caching service isolated per store owner.

    Keys pattern: {prefix}:owner:{owner_id}:{module}:{key}
    """

    def __init__(self, app: Optional[Flask] = None):
        self.client: Optional[redis.Redis] = None
        self._enabled: bool = False
        self._prefix: str = ""

        if app:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Initialize Redis client from Flask app config."""
        self._enabled = app.config.get('CACHE_ENABLED', True)
        self._prefix = app.config.get('CACHE_KEY_PREFIX', 'kasir')
        redis_url = app.config.get('REDIS_URL', 'redis://localhost:6379/0')

        if not self._enabled:
            logger.info("[CACHE] Cache is DISABLED via config")
            return

        try:
            self.client = redis.from_url(
                redis_url,
                decode_responses=True,
                socket_connect_timeout=3,
                socket_timeout=3,
                retry_on_timeout=True,
                health_check_interval=30
            )
            self.client.ping()
            logger.info(f"[CACHE] Redis connected: {redis_url}")
        except (ConnectionError, TimeoutError, RedisError) as e:
            logger.warning(f"[CACHE] Redis connection failed: {e}. Cache DISABLED.")
            self._enabled = False
            self.client = None

    def is_available(self) -> bool:
        return self._enabled and self.client is not None

    def _build_key(self, owner_id: int, module: str, key: str) -> str:
        return f"{self._prefix}:owner:{owner_id}:{module}:{key}"

    def _serialize(self, value: Any) -> str:
        def default_handler(obj: Any) -> Any:
            if isinstance(obj, (datetime, date)):
                return obj.isoformat()
            elif isinstance(obj, Decimal):
                return {"__decimal__": str(obj)}
            raise TypeError(f"Object of type {type(obj)} is not JSON serializable")
        return json.dumps(value, default=default_handler)

    def _deserialize(self, value: str) -> Any:
        def object_hook(dct: Dict[str, Any]) -> Any:
            if "__decimal__" in dct:
                return Decimal(dct["__decimal__"])
            return dct
        return json.loads(value, object_hook=object_hook)

    def get(self, owner_id: int, module: str, key: str) -> Optional[Any]:
        if not self.is_available():
            return None
        try:
            value = self.client.get(self._build_key(owner_id, module, key))
            if value is None:
                return None
            return self._deserialize(value)
        except (RedisError, json.JSONDecodeError) as e:
            logger.warning(f"[CACHE] Get error: {e}")
            return None

    def set(self, owner_id: int, module: str, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        if not self.is_available():
            return False
        try:
            if ttl is None:
                ttl = current_app.config.get('CACHE_DEFAULT_TTL', 60)
            self.client.setex(self._build_key(owner_id, module, key), ttl, self._serialize(value))
            return True
        except (RedisError, TypeError) as e:
            logger.warning(f"[CACHE] Set error: {e}")
            return False

    def delete_pattern(self, owner_id: int, module: str, pattern: str = "*") -> int:
        """Delete all keys matching a pattern for an owner/module."""
        if not self.is_available():
            return 0
        try:
            full_pattern = self._build_key(owner_id, module, pattern)
            deleted_count = 0
            for key in self.client.scan_iter(match=full_pattern, count=100):
                self.client.delete(key)
                deleted_count += 1
            if deleted_count > 0:
                logger.info(f"[CACHE] INVALIDATE: {full_pattern} ({deleted_count} keys)")
            return deleted_count
        except RedisError as e:
            logger.warning(f"[CACHE] Invalidate error: {e}")
            return 0

    def memoize(self, owner_id: int, module: str, key: str, loader_fn: Callable[[], Any],
                ttl: Optional[int] = None) -> Any:
        """Cache-aside: return the cached value or load, store and return it."""
        cached = self.get(owner_id, module, key)
        if cached is not None:
            return cached
        value = loader_fn()
        self.set(owner_id, module, key, value, ttl)
        return value

    def invalidate_module(self, owner_id: int, module: str) -> int:
        return self.delete_pattern(owner_id, module, "*")


def init_cache(app: Flask) -> CacheService:
    """Create the cache service and attach it to the app."""
    cache = CacheService(app)
    app.extensions['cache'] = cache
    return cache


def get_cache() -> CacheService:
    return current_app.extensions['cache']


def invalidate_reports(owner_id: int) -> None:
    """Drop cached analytics and dashboard data after sales or stock change."""
    cache = get_cache()
    cache.invalidate_module(owner_id, 'analytics')
    cache.invalidate_module(owner_id, 'dashboard')
