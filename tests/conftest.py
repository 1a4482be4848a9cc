"""Shared test fixtures for viacep.

Provides a controllable clock for expiry tests, canned ViaCEP payloads,
mock-transport helpers, and environment isolation so that a developer's
``VIACEP_*`` variables or config file never leak into tests.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from viacep.models import Address, CacheConfig, ClientConfig, RequestConfig


_SE_PAYLOAD: dict[str, Any] = {
    "cep": "01001-000",
    "logradouro": "Praça da Sé",
    "complemento": "lado ímpar",
    "unidade": "",
    "bairro": "Sé",
    "localidade": "São Paulo",
    "uf": "SP",
    "estado": "São Paulo",
    "regiao": "Sudeste",
    "ibge": "3550308",
    "gia": "1004",
    "ddd": "11",
    "siafi": "7107",
}


@pytest.fixture
def se_payload() -> dict[str, Any]:
    """Raw ViaCEP answer for CEP 01001-000 (Praça da Sé)."""
    return dict(_SE_PAYLOAD)


@pytest.fixture
def se_address(se_payload: dict[str, Any]) -> Address:
    return Address(**se_payload)


class _FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Environment isolation
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG_CONFIG_HOME at tmp_path and clear every VIACEP_* variable.

    Returns:
        The directory that :func:`viacep.config.get_config_dir` resolves to.
    """
    config_home = tmp_path / "config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    monkeypatch.setattr("viacep.config._is_xdg_platform", lambda: True)
    for var in [
        "VIACEP_BASE_URL",
        "VIACEP_TIMEOUT",
        "VIACEP_MAX_RETRIES",
        "VIACEP_CACHE_ENABLED",
        "VIACEP_CACHE_BACKEND",
        "VIACEP_CACHE_TTL",
        "VIACEP_REDIS_URL",
    ]:
        monkeypatch.delenv(var, raising=False)
    return config_home / "viacep"


# ---------------------------------------------------------------------------
# Clock and config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> _FakeClock:
    """Clock frozen at t=1000 until ``advance`` is called."""
    return _FakeClock()


@pytest.fixture
def client_config() -> ClientConfig:
    """Config with retries that never sleep and an in-memory cache."""
    return ClientConfig(
        base_url="https://viacep.test",
        request=RequestConfig(timeout=5, max_retries=1, retry_wait_seconds=0),
        cache=CacheConfig(ttl_seconds=3600),
    )


# ---------------------------------------------------------------------------
# HTTP helpers
# ---------------------------------------------------------------------------


class _RecordingHandler:
    """MockTransport handler that records requests and replays a responder."""

    def __init__(self, responder: Callable[[httpx.Request], httpx.Response]) -> None:
        self._responder = responder
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._responder(request)

    @property
    def count(self) -> int:
        return len(self.requests)


@pytest.fixture
def make_handler() -> Callable[[Callable[[httpx.Request], httpx.Response]], _RecordingHandler]:
    """Factory wrapping a responder in a request-recording MockTransport handler."""
    return _RecordingHandler


@pytest.fixture
def se_handler(make_handler, se_payload: dict[str, Any]) -> _RecordingHandler:
    """Handler answering every request with the Praça da Sé payload."""
    return make_handler(lambda request: httpx.Response(200, json=se_payload))
