"""In-process cache backend.

Entries live in a single ``dict`` guarded by a reader/writer lock: lookups
share the lock, writes hold it exclusively.  Expiry is lazy -- each entry
records its own deadline, :meth:`MemoryCache.get` ignores entries past it,
and writes periodically sweep them out.  An overwrite replaces the deadline
together with the data, so an older TTL can never remove a newer value.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator, NamedTuple, Optional, TypeVar

from viacep.cache import serializer
from viacep.cache.base import TTL, Cache, ttl_seconds

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Number of writes between sweeps of expired entries.
_SWEEP_INTERVAL = 256


class _ReadWriteLock:
    """Many concurrent readers or a single writer."""

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._readers:
                self._cond.wait()
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class _Entry(NamedTuple):
    data: bytes
    expires_at: Optional[float]


class MemoryCache(Cache):
    """Thread-safe in-memory cache with per-entry expiry.

    Args:
        clock: Monotonic time source in seconds.  Tests inject a fake
            clock to step over TTLs without sleeping.

    Example::

        cache = MemoryCache()
        cache.set("viacep:abc", Address(cep="01001-000"), ttl=3600)
        cache.get("viacep:abc", Address)
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._lock = _ReadWriteLock()
        self._data: dict[str, _Entry] = {}
        self._writes = 0

    def get(self, key: str, into: type[T]) -> Optional[T]:
        with self._lock.read():
            entry = self._data.get(key)
            now = self._clock()
        if entry is None:
            logger.debug("Cache miss: %s", key)
            return None
        if entry.expires_at is not None and now >= entry.expires_at:
            logger.debug("Cache entry expired: %s", key)
            return None
        try:
            return serializer.decode(entry.data, into)
        except (ValueError, TypeError) as exc:
            logger.warning("Discarding undecodable cache entry %s: %s", key, exc)
            return None

    def set(self, key: str, value: Any, ttl: TTL = 0) -> None:
        seconds = ttl_seconds(ttl)
        data = serializer.encode(value)
        with self._lock.write():
            expires_at = self._clock() + seconds if seconds > 0 else None
            self._data[key] = _Entry(data, expires_at)
            self._writes += 1
            if self._writes % _SWEEP_INTERVAL == 0:
                self._purge_locked()

    def delete(self, key: str) -> None:
        with self._lock.write():
            self._data.pop(key, None)

    def clear(self) -> None:
        with self._lock.write():
            self._data.clear()

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock.write():
            return self._purge_locked()

    def _purge_locked(self) -> int:
        now = self._clock()
        expired = [
            k for k, e in self._data.items()
            if e.expires_at is not None and now >= e.expires_at
        ]
        for k in expired:
            del self._data[k]
        if expired:
            logger.debug("Purged %d expired cache entries", len(expired))
        return len(expired)

    def __len__(self) -> int:
        """Number of live (unexpired) entries."""
        with self._lock.read():
            now = self._clock()
            return sum(
                1 for e in self._data.values()
                if e.expires_at is None or now < e.expires_at
            )

    def stats(self) -> dict[str, Any]:
        """Return cache statistics.

        Returns:
            A ``dict`` with ``backend`` (``"memory"``) and ``size``, the
            number of live entries.
        """
        return {"backend": "memory", "size": len(self)}
