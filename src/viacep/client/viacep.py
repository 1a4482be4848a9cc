"""ViaCEP client with cache-aside lookups.

:class:`ViaCep` exposes the two ViaCEP read operations:

- :meth:`ViaCep.cep` -- resolve a single CEP (``GET /ws/{cep}/json/``);
- :meth:`ViaCep.addresses` -- search by state, city and street
  (``GET /ws/{uf}/{city}/{street}/json/``).

Each call derives a cache key from its arguments, returns a cached result
when one exists, and otherwise fetches from the API and stores the result
for ``cache.ttl_seconds``.  Cache reads never fail a lookup, and neither do
cache writes: a failed write is logged and the network result returned.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from viacep.cache import Cache, build_cache, cache_key
from viacep.client.transport import HttpFetcher
from viacep.config import resolve_config
from viacep.exceptions import (
    CacheError,
    InvalidUsageError,
    NotFoundError,
    ResponseDecodeError,
)
from viacep.models import Address, ClientConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CEP_SEPARATORS = re.compile(r"[\s.\-]")
_UF_PATTERN = re.compile(r"^[A-Za-z]{2}$")
_MIN_SEARCH_TERM = 3


def normalize_cep(code: str) -> str:
    """Strip separators from *code* and require exactly eight digits.

    ``"01001-000"``, ``"01.001-000"`` and ``" 01001000 "`` all normalise
    to ``"01001000"``.

    Raises:
        InvalidUsageError: If the result is not eight ASCII digits.
    """
    digits = _CEP_SEPARATORS.sub("", code or "")
    if len(digits) != 8 or not digits.isascii() or not digits.isdigit():
        raise InvalidUsageError(f"invalid CEP {code!r}: expected 8 digits")
    return digits


def validate_search(uf: str, city: str, street: str) -> tuple[str, str, str]:
    """Check search arguments against ViaCEP's own constraints.

    Returns:
        The stripped ``(uf, city, street)`` with *uf* upper-cased.

    Raises:
        InvalidUsageError: If *uf* is not two letters or *city* / *street*
            are shorter than three characters.
    """
    uf = (uf or "").strip().upper()
    city = (city or "").strip()
    street = (street or "").strip()
    if not _UF_PATTERN.match(uf):
        raise InvalidUsageError(f"invalid UF {uf!r}: expected a two-letter state code")
    if len(city) < _MIN_SEARCH_TERM:
        raise InvalidUsageError(f"city must have at least {_MIN_SEARCH_TERM} characters")
    if len(street) < _MIN_SEARCH_TERM:
        raise InvalidUsageError(f"street must have at least {_MIN_SEARCH_TERM} characters")
    return uf, city, street


def cep_url(base_url: str, cep: str) -> str:
    return f"{base_url.rstrip('/')}/ws/{cep}/json/"


def search_url(base_url: str, uf: str, city: str, street: str) -> str:
    segments = "/".join(quote(s, safe="") for s in (uf, city, street))
    return f"{base_url.rstrip('/')}/ws/{segments}/json/"


def address_from_payload(payload: dict[str, Any], url: str) -> Address:
    """Turn a decoded single-CEP payload into an :class:`Address`.

    Raises:
        NotFoundError: If ViaCEP flagged the CEP as unknown (``"erro"``).
        ResponseDecodeError: If the payload does not fit the model.
    """
    if payload.get("erro") in (True, "true"):
        raise NotFoundError(f"CEP not found: {url}")
    try:
        return Address.model_validate(payload)
    except ValidationError as exc:
        raise ResponseDecodeError(f"Response from {url} is not an address: {exc}", url=url) from exc


class _CacheAside:
    """Cache handling shared by the blocking and async clients."""

    _cache: Optional[Cache]
    _config: ClientConfig

    def _cache_get(self, key: str, into: type[T]) -> Optional[T]:
        if self._cache is None:
            return None
        value = self._cache.get(key, into)
        if value is not None:
            logger.debug("Cache hit: %s", key)
        return value

    def _cache_set(self, key: str, value: Any) -> None:
        if self._cache is None:
            return
        try:
            self._cache.set(key, value, self._config.cache.ttl_seconds)
        except CacheError as exc:
            logger.warning("Could not cache result under %s: %s", key, exc)

    def _key(self, *parts: str) -> str:
        return cache_key(*parts, prefix=self._config.cache.prefix)


class ViaCep(_CacheAside):
    """Blocking ViaCEP client.

    Args:
        config: Client configuration.  Defaults to ``ClientConfig()``;
            use :meth:`from_config` to honour the config file and
            ``VIACEP_*`` environment variables.
        cache: Cache to use instead of the one built from
            ``config.cache``.  Ignored when ``config.cache.enabled`` is
            false.
        fetcher: Pre-built transport.  Takes precedence over
            *http_client*.
        http_client: Pre-built :class:`httpx.Client` for the default
            transport (e.g. one with a mock transport in tests).

    Example::

        with ViaCep() as client:
            address = client.cep("01001-000")
            matches = client.addresses("SP", "São Paulo", "Praça da Sé")
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        cache: Optional[Cache] = None,
        fetcher: Optional[HttpFetcher] = None,
        http_client: Optional[httpx.Client] = None,
    ) -> None:
        self._config = config or ClientConfig()
        self._owns_cache = False
        if not self._config.cache.enabled:
            self._cache = None
        elif cache is not None:
            self._cache = cache
        else:
            self._cache = build_cache(self._config.cache)
            self._owns_cache = True
        self._fetcher = fetcher or HttpFetcher(self._config.request, client=http_client)
        self._owns_fetcher = fetcher is None

    @classmethod
    def from_config(cls, **kwargs: Any) -> ViaCep:
        """Build a client from the resolved config file and environment."""
        return cls(resolve_config(), **kwargs)

    @property
    def cache(self) -> Optional[Cache]:
        return self._cache

    def __enter__(self) -> ViaCep:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_fetcher:
            self._fetcher.close()
        if self._owns_cache and self._cache is not None:
            self._cache.close()

    def cep(self, code: str) -> Address:
        """Look up a single CEP.

        Args:
            code: The postal code, with or without separators.

        Raises:
            InvalidUsageError: If *code* is not a well-formed CEP.
            NotFoundError: If ViaCEP does not know the CEP.
            HTTPStatusError: On any non-200 response.
            ConnectionError_: On network failures after all retries.
        """
        normalized = normalize_cep(code)
        key = self._key(normalized)
        cached = self._cache_get(key, Address)
        if cached is not None:
            return cached

        url = cep_url(self._config.base_url, normalized)
        payload = self._fetcher.get_json(url, dict[str, Any])
        address = address_from_payload(payload, url)
        self._cache_set(key, address)
        return address

    def addresses(self, uf: str, city: str, street: str) -> list[Address]:
        """Search addresses by state, city and street name.

        Returns:
            Matching addresses; empty when ViaCEP finds nothing.

        Raises:
            InvalidUsageError: If the arguments break ViaCEP's constraints.
            HTTPStatusError: On any non-200 response.
            ConnectionError_: On network failures after all retries.
        """
        uf, city, street = validate_search(uf, city, street)
        key = self._key(uf, city, street)
        cached = self._cache_get(key, list[Address])
        if cached is not None:
            return cached

        url = search_url(self._config.base_url, uf, city, street)
        addresses = self._fetcher.get_json(url, list[Address])
        self._cache_set(key, addresses)
        return addresses
