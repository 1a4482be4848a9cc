"""Asynchronous ViaCEP client -- mirrors :class:`~viacep.client.viacep.ViaCep`.

:class:`AsyncViaCep` offers the same two lookups as coroutines over
:class:`~viacep.client.transport.AsyncHttpFetcher`.  Cache backends are
synchronous; their calls are short (an in-process dict or a single Redis
round trip) and run inline on the event loop.
"""

from __future__ import annotations

from typing import Any, Optional

import httpx

from viacep.cache import Cache, build_cache
from viacep.client.transport import AsyncHttpFetcher
from viacep.client.viacep import (
    _CacheAside,
    address_from_payload,
    cep_url,
    normalize_cep,
    search_url,
    validate_search,
)
from viacep.config import resolve_config
from viacep.models import Address, ClientConfig


class AsyncViaCep(_CacheAside):
    """Non-blocking ViaCEP client.

    Takes the same arguments as :class:`~viacep.client.viacep.ViaCep`, with
    an :class:`httpx.AsyncClient` in place of the blocking one.

    Example::

        async with AsyncViaCep() as client:
            address = await client.cep("01001000")
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        cache: Optional[Cache] = None,
        fetcher: Optional[AsyncHttpFetcher] = None,
        http_client: Optional[httpx.AsyncClient] = None,
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
        self._fetcher = fetcher or AsyncHttpFetcher(self._config.request, client=http_client)
        self._owns_fetcher = fetcher is None

    @classmethod
    def from_config(cls, **kwargs: Any) -> AsyncViaCep:
        """Build a client from the resolved config file and environment."""
        return cls(resolve_config(), **kwargs)

    @property
    def cache(self) -> Optional[Cache]:
        return self._cache

    async def __aenter__(self) -> AsyncViaCep:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_fetcher:
            await self._fetcher.aclose()
        if self._owns_cache and self._cache is not None:
            self._cache.close()

    async def cep(self, code: str) -> Address:
        """Look up a single CEP.  See :meth:`ViaCep.cep`."""
        normalized = normalize_cep(code)
        key = self._key(normalized)
        cached = self._cache_get(key, Address)
        if cached is not None:
            return cached

        url = cep_url(self._config.base_url, normalized)
        payload = await self._fetcher.get_json(url, dict[str, Any])
        address = address_from_payload(payload, url)
        self._cache_set(key, address)
        return address

    async def addresses(self, uf: str, city: str, street: str) -> list[Address]:
        """Search addresses by state, city and street.  See :meth:`ViaCep.addresses`."""
        uf, city, street = validate_search(uf, city, street)
        key = self._key(uf, city, street)
        cached = self._cache_get(key, list[Address])
        if cached is not None:
            return cached

        url = search_url(self._config.base_url, uf, city, street)
        addresses = await self._fetcher.get_json(url, list[Address])
        self._cache_set(key, addresses)
        return addresses
