import json
import logging
from typing import Any, Optional

import redis

from spooky_styles.core.config import RedisConfig

logger = logging.getLogger(__name__)


class Cache:
    """
    JSON side-cache on top of Redis.

    Every Redis failure is logged and treated as a miss, so the API keeps
    serving from Postgres when Redis is down. A disabled cache never
    touches the network.
    """

    def __init__(self, settings: RedisConfig, client: Optional[redis.Redis] = None):
        self.settings = settings
        self.enabled = settings.enabled
        self._client = client

    @property
    def client(self) -> Optional[redis.Redis]:
        if not self.enabled:
            return None
        if self._client is None:
            self._client = redis.Redis.from_url(
                self.settings.url,
                decode_responses=self.settings.decode_responses,
                socket_timeout=self.settings.socket_timeout,
            )
        return self._client

    def get_json(self, key: str) -> Optional[Any]:
        client = self.client
        if client is None:
            return None
        try:
            raw = client.get(key)
        except redis.RedisError as e:
            logger.warning(f"Cache get failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding unreadable cache entry {key}")
            return None

    def set_json(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        client = self.client
        if client is None:
            return False
        try:
            client.setex(key, ttl or self.settings.default_ttl, json.dumps(value, default=str))
            return True
        except redis.RedisError as e:
            logger.warning(f"Cache set failed for {key}: {e}")
            return False

    def delete(self, key: str) -> None:
        client = self.client
        if client is None:
            return
        try:
            client.delete(key)
        except redis.RedisError as e:
            logger.warning(f"Cache delete failed for {key}: {e}")

    def invalidate(self, pattern: str) -> int:
        """Delete every key matching a glob pattern; returns how many were removed"""
        client = self.client
        if client is None:
            return 0
        removed = 0
        try:
            for key in client.scan_iter(match=pattern, count=100):
                removed += client.delete(key)
        except redis.RedisError as e:
            logger.warning(f"Cache invalidation failed for {pattern}: {e}")
        return removed

    def ping(self) -> bool:
        client = self.client
        if client is None:
            return False
        try:
            return bool(client.ping())
        except redis.RedisError as e:
            logger.warning(f"Cache ping failed: {e}")
            return False
