"""viacep -- client for the ViaCEP Brazilian postal-code API.

Looks up addresses by CEP or by state/city/street, caching results in
process memory or in Redis so repeated lookups skip the network.

Typical use::

    from viacep import ViaCep

    with ViaCep() as client:
        address = client.cep("01001-000")
        print(address.logradouro, address.localidade)

Modules:
    client: Blocking and async API clients and their HTTP transport.
    cache: Cache contract, in-memory and Redis backends, key derivation.
    models: Pydantic models for addresses and configuration.
    config: XDG-aware configuration file and environment resolution.
    exceptions: Exception hierarchy rooted at :class:`ViaCepError`.
"""

from viacep.client import AsyncViaCep, ViaCep
from viacep.exceptions import ViaCepError
from viacep.models import Address, CacheConfig, ClientConfig, RequestConfig

__version__ = "0.1.0"

__all__ = [
    "Address",
    "AsyncViaCep",
    "CacheConfig",
    "ClientConfig",
    "RequestConfig",
    "ViaCep",
    "ViaCepError",
]
