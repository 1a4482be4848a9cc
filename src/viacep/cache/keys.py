"""Cache key derivation.

Keys are SHA-256 hashes of the comma-joined components, prefixed with a
namespace so that entries can share a Redis database with unrelated data.
"""

from __future__ import annotations

import hashlib

from viacep.models import DEFAULT_CACHE_PREFIX


def cache_key(*parts: str, prefix: str = DEFAULT_CACHE_PREFIX) -> str:
    """Derive a deterministic cache key from *parts*.

    Identical component tuples (same values, same order) always yield the
    same key.

    Example::

        >>> cache_key("01001000")[:7]
        'viacep:'
    """
    raw = ",".join(parts)
    return prefix + hashlib.sha256(raw.encode("utf-8")).hexdigest()
