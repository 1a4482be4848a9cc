"""Pluggable result caching for viacep.

:class:`Cache` is the backend contract; :class:`MemoryCache` keeps entries
in-process and :class:`RedisCache` stores them in a Redis server.
:func:`build_cache` picks a backend from a
:class:`~viacep.models.CacheConfig`.
"""

from __future__ import annotations

from typing import Optional

from viacep.cache.base import Cache
from viacep.cache.keys import cache_key
from viacep.cache.memory import MemoryCache
from viacep.cache.redis import RedisCache
from viacep.exceptions import ConfigError
from viacep.models import CacheBackend, CacheConfig

__all__ = ["Cache", "MemoryCache", "RedisCache", "build_cache", "cache_key"]


def build_cache(config: CacheConfig) -> Optional[Cache]:
    """Create the cache described by *config*.

    Returns:
        ``None`` when caching is disabled, otherwise a fresh backend.

    Raises:
        ConfigError: If the redis backend is selected without a URL.
    """
    if not config.enabled:
        return None
    if config.backend == CacheBackend.REDIS:
        if not config.redis_url:
            raise ConfigError("cache backend 'redis' requires redis_url (or VIACEP_REDIS_URL)")
        return RedisCache.from_url(config.redis_url, prefix=config.prefix)
    return MemoryCache()
