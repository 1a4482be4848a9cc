"""HTTP clients for the ViaCEP API.

Classes:
    :class:`ViaCep` -- blocking client backed by :class:`httpx.Client`.
    :class:`AsyncViaCep` -- non-blocking client backed by :class:`httpx.AsyncClient`.
    :class:`HttpFetcher` / :class:`AsyncHttpFetcher` -- the JSON transports
    both clients use.

Example::

    from viacep.client import ViaCep

    with ViaCep() as client:
        address = client.cep("01001-000")
"""

from viacep.client.async_viacep import AsyncViaCep
from viacep.client.transport import AsyncHttpFetcher, HttpFetcher
from viacep.client.viacep import ViaCep

__all__ = ["ViaCep", "AsyncViaCep", "HttpFetcher", "AsyncHttpFetcher"]
