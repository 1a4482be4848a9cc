"""Exception hierarchy for viacep.

All exceptions inherit from :class:`ViaCepError` so callers can catch every
library failure with a single ``except`` clause.  Cache *reads* never raise;
only writes, network calls, and argument validation do.

Subclass hierarchy::

    ViaCepError
    +-- InvalidUsageError     (bad arguments, never retried)
    +-- ConfigError           (invalid config file or env values)
    +-- ConnectionError_      (transport failure after all retries)
    +-- HTTPStatusError       (non-200 response)
    +-- NotFoundError         (API reported an unknown CEP)
    +-- ResponseDecodeError   (body does not fit the destination type)
    +-- CacheError
        +-- SerializationError
        +-- CacheBackendError
"""

from __future__ import annotations

from typing import Optional


class ViaCepError(Exception):
    """Base exception for all viacep errors."""


class InvalidUsageError(ViaCepError):
    """Raised for invalid arguments (malformed CEP, non-type destination, negative TTL)."""


class ConfigError(ViaCepError):
    """Raised for configuration problems (invalid JSON, bad env values, missing Redis URL)."""


class ConnectionError_(ViaCepError):
    """Raised on network-level failures (timeout, DNS resolution, connection refused).

    Named with a trailing underscore to avoid shadowing the built-in
    ``ConnectionError``.  The original transport exception is chained as
    ``__cause__``.

    Args:
        message: Human-readable error description.
        url: The URL that was being requested.
    """

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class HTTPStatusError(ViaCepError):
    """Raised when the API answers with any status other than 200.

    Args:
        url: The requested URL.
        status_code: The observed HTTP status code.
    """

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(
            f"API request to {url} returned status code {status_code}; expected 200 (OK)"
        )
        self.url = url
        self.status_code = status_code


class NotFoundError(ViaCepError):
    """Raised when ViaCEP answers ``{"erro": true}`` for a well-formed but unknown CEP."""


class ResponseDecodeError(ViaCepError):
    """Raised when a 200 response body cannot be decoded into the requested type.

    Args:
        message: Human-readable error description.
        url: The URL whose body failed to decode.
    """

    def __init__(self, message: str, url: Optional[str] = None) -> None:
        super().__init__(message)
        self.url = url


class CacheError(ViaCepError):
    """Base class for cache write failures."""


class SerializationError(CacheError):
    """Raised by ``Cache.set`` when the value cannot be serialized."""


class CacheBackendError(CacheError):
    """Raised when the remote cache store rejects a write or delete."""
