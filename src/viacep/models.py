"""Canonical Pydantic models shared across all viacep modules.

The models fall into two groups:

**Domain models** -- decoded from API responses and stored in the cache:
    :class:`Address`.

**Configuration models** -- serialised as JSON in the user's config
directory and passed explicitly to :class:`~viacep.client.ViaCep`:
    :class:`RequestConfig`, :class:`CacheConfig`, and :class:`ClientConfig`.
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_BASE_URL = "https://viacep.com.br"
DEFAULT_CACHE_PREFIX = "viacep:"


# --- Domain ---


class Address(BaseModel):
    """A single address record as returned by ViaCEP.

    Field names follow the API's JSON keys.  Every field defaults to an
    empty string because ViaCEP omits or blanks fields that do not apply
    (e.g. ``complemento`` for most CEPs, ``unidade`` outside large
    recipients).  Unknown keys are ignored so that new API fields do not
    break decoding.

    Example::

        Address(cep="01001-000", logradouro="Praça da Sé", localidade="São Paulo", uf="SP")
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    cep: str = ""
    logradouro: str = ""
    complemento: str = ""
    unidade: str = ""
    bairro: str = ""
    localidade: str = ""
    uf: str = ""
    estado: str = ""
    regiao: str = ""
    ibge: str = ""
    gia: str = ""
    ddd: str = ""
    siafi: str = ""


# --- Configuration ---


class CacheBackend(str, enum.Enum):
    """Cache backends selectable through :class:`CacheConfig`."""

    MEMORY = "memory"
    REDIS = "redis"


class RequestConfig(BaseModel):
    """HTTP transport settings applied to every API call."""

    timeout: float = Field(default=30, gt=0, description="Request timeout in seconds")
    max_retries: int = Field(
        default=3, ge=0, description="Extra attempts after a transport failure"
    )
    retry_wait_seconds: float = Field(
        default=0.5, ge=0, description="Fixed delay between attempts"
    )


class CacheConfig(BaseModel):
    """Result cache settings."""

    enabled: bool = Field(default=True, description="Enable result caching")
    backend: CacheBackend = Field(default=CacheBackend.MEMORY)
    ttl_seconds: float = Field(
        default=3600, ge=0, description="Entry TTL in seconds; 0 disables expiry"
    )
    redis_url: Optional[str] = Field(
        default=None, description="Connection URL for the redis backend"
    )
    prefix: str = Field(
        default=DEFAULT_CACHE_PREFIX, description="Namespace prepended to every cache key"
    )


class ClientConfig(BaseModel):
    """Top-level configuration persisted at ``~/.config/viacep/config.json``.

    Loaded by :func:`~viacep.config.load_config` and merged with environment
    overrides by :func:`~viacep.config.resolve_config`.
    """

    base_url: str = DEFAULT_BASE_URL
    request: RequestConfig = Field(default_factory=RequestConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
