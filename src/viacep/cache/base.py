"""Backend-independent cache contract.

Every backend implements :meth:`Cache.get`, :meth:`Cache.set`, and
:meth:`Cache.delete`.  Reads are lossy on purpose: a missing key, an expired
entry, corrupt data, and an unreachable backend all come back as ``None``
so that callers simply fall through to the network.
"""

from __future__ import annotations

import datetime
from abc import ABC, abstractmethod
from typing import Any, Optional, TypeVar, Union

from viacep.exceptions import InvalidUsageError

T = TypeVar("T")

TTL = Union[int, float, datetime.timedelta]


def ttl_seconds(ttl: TTL) -> float:
    """Normalise *ttl* to seconds, rejecting negative values."""
    if isinstance(ttl, datetime.timedelta):
        seconds = ttl.total_seconds()
    else:
        seconds = float(ttl)
    if seconds < 0:
        raise InvalidUsageError(f"ttl must be >= 0, got {ttl!r}")
    return seconds


class Cache(ABC):
    """Abstract key-value cache with per-entry TTL."""

    @abstractmethod
    def get(self, key: str, into: type[T]) -> Optional[T]:
        """Return the value stored under *key* decoded as *into*.

        Args:
            key: The cache key, usually from :func:`~viacep.cache.keys.cache_key`.
            into: Destination type, e.g. ``Address`` or ``list[Address]``.
                Must be compatible with the shape of the stored value.

        Returns:
            The decoded value, or ``None`` on a miss, an expired entry, a
            backend failure, or data that does not fit *into*.
        """

    @abstractmethod
    def set(self, key: str, value: Any, ttl: TTL = 0) -> None:
        """Store *value* under *key*.

        Args:
            key: The cache key.
            value: Any JSON-serializable value (models, dataclasses,
                dicts, lists, scalars).
            ttl: Lifetime in seconds or as a ``timedelta``.  ``0`` means
                the entry never expires on its own.

        Raises:
            SerializationError: If *value* cannot be serialized.  Any
                entry already stored under *key* is left untouched.
            InvalidUsageError: If *ttl* is negative.
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove *key*.  Deleting an absent key is not an error."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry owned by this cache."""

    def close(self) -> None:
        """Release backend resources."""

    def __enter__(self) -> Cache:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
