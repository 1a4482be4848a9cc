"""HTTP transport: fetch a JSON document and decode it into a typed value.

:class:`HttpFetcher` wraps :class:`httpx.Client` and :class:`AsyncHttpFetcher`
wraps :class:`httpx.AsyncClient`.  Both send fixed JSON headers, retry
transport failures a fixed number of times with a fixed delay, and map
failures onto the :mod:`viacep.exceptions` hierarchy:

- transport errors (DNS, refused connection, timeout) -- retried, then
  :class:`~viacep.exceptions.ConnectionError_` carrying the URL;
- other request failures (redirect loops, undecodable content encoding) --
  :class:`~viacep.exceptions.ConnectionError_` at once, never retried;
- any status other than 200 -- :class:`~viacep.exceptions.HTTPStatusError`
  carrying the URL and status code, never retried;
- a body that does not fit the destination type --
  :class:`~viacep.exceptions.ResponseDecodeError`.
"""

from __future__ import annotations

import asyncio
import logging
import time
import typing
from typing import Any, Optional, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from viacep.exceptions import (
    ConnectionError_,
    HTTPStatusError,
    InvalidUsageError,
    ResponseDecodeError,
)
from viacep.models import RequestConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def _check_destination(into: Any) -> None:
    """Fail fast unless *into* is a class or a parametrised typing form."""
    if isinstance(into, type) or typing.get_origin(into) is not None:
        return
    raise InvalidUsageError(
        f"expected a type for 'into', but got an instance of {type(into).__name__}"
    )


def _decode(response: httpx.Response, url: str, into: type[T]) -> T:
    if response.status_code != httpx.codes.OK:
        raise HTTPStatusError(url, response.status_code)
    try:
        return TypeAdapter(into).validate_json(response.content)
    except ValidationError as exc:
        raise ResponseDecodeError(
            f"Response from {url} could not be decoded as {into!r}: {exc}", url=url
        ) from exc


class HttpFetcher:
    """Blocking JSON fetcher with fixed-count retry.

    Args:
        config: Timeout and retry settings.
        client: Optional pre-built :class:`httpx.Client` (e.g. with a
            mock transport).  A caller-supplied client is not closed by
            :meth:`close`.

    Example::

        with HttpFetcher(RequestConfig(max_retries=1)) as fetcher:
            address = fetcher.get_json("https://viacep.com.br/ws/01001000/json/", Address)
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=self._config.timeout,
            follow_redirects=True,
        )

    def __enter__(self) -> HttpFetcher:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def get_json(self, url: str, into: type[T]) -> T:
        """GET *url* and decode the JSON body into *into*.

        Args:
            url: Absolute URL to fetch.
            into: Destination type, e.g. ``Address`` or ``list[Address]``.

        Raises:
            InvalidUsageError: If *into* is not a type.
            ConnectionError_: On network failures after all retries, or
                at once on other request failures such as redirect loops.
            HTTPStatusError: On any non-200 response.
            ResponseDecodeError: If the body does not fit *into*.
        """
        _check_destination(into)
        max_retries = self._config.max_retries
        delay = self._config.retry_wait_seconds

        for attempt in range(max_retries + 1):
            try:
                response = self._client.get(url, headers=DEFAULT_HEADERS)
                break
            except httpx.TransportError as exc:
                if attempt < max_retries:
                    logger.debug(
                        "GET %s failed: %s, retrying in %ss (attempt %d/%d)",
                        url, exc, delay, attempt + 1, max_retries,
                    )
                    time.sleep(delay)
                    continue
                raise ConnectionError_(
                    f"failed to send GET request to {url} after {max_retries + 1} attempts: {exc}",
                    url=url,
                ) from exc
            except httpx.RequestError as exc:
                raise ConnectionError_(f"GET request to {url} failed: {exc}", url=url) from exc

        return _decode(response, url, into)


class AsyncHttpFetcher:
    """Non-blocking counterpart of :class:`HttpFetcher`.

    Cancelling the awaiting task aborts the in-flight attempt; the
    resulting :class:`asyncio.CancelledError` is neither retried nor
    wrapped.
    """

    def __init__(
        self,
        config: Optional[RequestConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._config = config or RequestConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self._config.timeout,
            follow_redirects=True,
        )

    async def __aenter__(self) -> AsyncHttpFetcher:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def get_json(self, url: str, into: type[T]) -> T:
        """GET *url* and decode the JSON body into *into*.

        Same contract as :meth:`HttpFetcher.get_json`.
        """
        _check_destination(into)
        max_retries = self._config.max_retries
        delay = self._config.retry_wait_seconds

        for attempt in range(max_retries + 1):
            try:
                response = await self._client.get(url, headers=DEFAULT_HEADERS)
                break
            except httpx.TransportError as exc:
                if attempt < max_retries:
                    logger.debug(
                        "GET %s failed: %s, retrying in %ss (attempt %d/%d)",
                        url, exc, delay, attempt + 1, max_retries,
                    )
                    await asyncio.sleep(delay)
                    continue
                raise ConnectionError_(
                    f"failed to send GET request to {url} after {max_retries + 1} attempts: {exc}",
                    url=url,
                ) from exc
            except httpx.RequestError as exc:
                raise ConnectionError_(f"GET request to {url} failed: {exc}", url=url) from exc

        return _decode(response, url, into)
