"""Redis cache backend.

A thin adapter over a synchronous :class:`redis.Redis` client.  Expiry is
delegated to Redis itself (``SET ... PX``); the adapter keeps no local
state.  Reads collapse "key not found" and connection failures into a miss,
writes surface failures as :class:`~viacep.exceptions.CacheBackendError`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, TypeVar

import redis

from viacep.cache import serializer
from viacep.cache.base import TTL, Cache, ttl_seconds
from viacep.exceptions import CacheBackendError
from viacep.models import DEFAULT_CACHE_PREFIX

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RedisCache(Cache):
    """Cache backed by a Redis server.

    Args:
        client: A connected :class:`redis.Redis` instance.  It must return
            raw bytes (``decode_responses=False``).
        prefix: Key namespace used by :meth:`clear` to find this cache's
            entries.
        owns_client: Close *client* in :meth:`close`.  Set by
            :meth:`from_url`; leave ``False`` for injected clients.
    """

    def __init__(
        self,
        client: redis.Redis,
        prefix: str = DEFAULT_CACHE_PREFIX,
        owns_client: bool = False,
    ) -> None:
        self._client = client
        self._prefix = prefix
        self._owns_client = owns_client

    @classmethod
    def from_url(cls, url: str, prefix: str = DEFAULT_CACHE_PREFIX, **kwargs: Any) -> RedisCache:
        """Create a cache with its own client connected to *url*."""
        kwargs.setdefault("socket_connect_timeout", 5)
        kwargs.setdefault("socket_timeout", 5)
        client = redis.Redis.from_url(url, **kwargs)
        return cls(client, prefix=prefix, owns_client=True)

    def get(self, key: str, into: type[T]) -> Optional[T]:
        try:
            raw = self._client.get(key)
        except redis.RedisError as exc:
            logger.warning("Redis GET %s failed, treating as miss: %s", key, exc)
            return None
        if raw is None:
            logger.debug("Cache miss: %s", key)
            return None
        try:
            return serializer.decode(raw, into)
        except (ValueError, TypeError) as exc:
            logger.warning("Discarding undecodable cache entry %s: %s", key, exc)
            return None

    def set(self, key: str, value: Any, ttl: TTL = 0) -> None:
        seconds = ttl_seconds(ttl)
        data = serializer.encode(value)
        try:
            if seconds > 0:
                self._client.set(key, data, px=max(1, round(seconds * 1000)))
            else:
                self._client.set(key, data)
        except redis.RedisError as exc:
            raise CacheBackendError(f"Redis SET {key} failed: {exc}") from exc

    def delete(self, key: str) -> None:
        try:
            self._client.delete(key)
        except redis.RedisError as exc:
            raise CacheBackendError(f"Redis DELETE {key} failed: {exc}") from exc

    def clear(self) -> None:
        """Delete every key under this cache's prefix.

        Uses ``SCAN`` rather than ``FLUSHDB`` so that unrelated data in the
        same database survives.
        """
        try:
            batch: list[Any] = []
            for key in self._client.scan_iter(match=f"{self._prefix}*", count=500):
                batch.append(key)
                if len(batch) >= 500:
                    self._client.delete(*batch)
                    batch = []
            if batch:
                self._client.delete(*batch)
        except redis.RedisError as exc:
            raise CacheBackendError(f"Redis clear of {self._prefix}* failed: {exc}") from exc

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
