"""Tests for the ViaCep client: validation, URLs, and cache-aside behaviour."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest

from viacep.cache import Cache, MemoryCache, cache_key
from viacep.client import ViaCep
from viacep.client.viacep import normalize_cep, search_url, validate_search
from viacep.config import save_config
from viacep.exceptions import (
    HTTPStatusError,
    InvalidUsageError,
    NotFoundError,
    SerializationError,
)
from viacep.models import Address, CacheConfig, ClientConfig


def _client(
    handler: Any,
    config: ClientConfig,
    cache: Cache | None = None,
) -> ViaCep:
    return ViaCep(
        config,
        cache=cache,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )


# ---------------------------------------------------------------------------
# Argument validation
# ---------------------------------------------------------------------------


class TestNormalizeCep:
    @pytest.mark.parametrize("raw", ["01001000", "01001-000", "01.001-000", " 01001000 "])
    def test_accepted_formats(self, raw: str) -> None:
        assert normalize_cep(raw) == "01001000"

    @pytest.mark.parametrize("raw", ["", "0100100", "010010000", "0100A000", "١٢٣٤٥٦٧٨"])
    def test_rejected_formats(self, raw: str) -> None:
        with pytest.raises(InvalidUsageError):
            normalize_cep(raw)


class TestValidateSearch:
    def test_normalises_arguments(self) -> None:
        assert validate_search(" sp ", " São Paulo ", "Praça") == ("SP", "São Paulo", "Praça")

    @pytest.mark.parametrize(
        "uf, city, street",
        [
            ("SPX", "São Paulo", "Praça"),
            ("S1", "São Paulo", "Praça"),
            ("SP", "SP", "Praça"),
            ("SP", "São Paulo", "Pr"),
        ],
    )
    def test_rejects_invalid_arguments(self, uf: str, city: str, street: str) -> None:
        with pytest.raises(InvalidUsageError):
            validate_search(uf, city, street)

    def test_search_url_percent_encodes_segments(self) -> None:
        url = search_url("https://viacep.test/", "SP", "São Paulo", "Praça da Sé")
        assert url == "https://viacep.test/ws/SP/S%C3%A3o%20Paulo/Pra%C3%A7a%20da%20S%C3%A9/json/"


# ---------------------------------------------------------------------------
# Lookup by CEP
# ---------------------------------------------------------------------------


class TestCep:
    def test_returns_address(
        self, se_handler: Any, client_config: ClientConfig, se_address: Address
    ) -> None:
        with _client(se_handler, client_config) as client:
            address = client.cep("01001000")
        assert address == se_address
        assert str(se_handler.requests[0].url) == "https://viacep.test/ws/01001000/json/"

    def test_second_call_is_served_from_cache(
        self, se_handler: Any, client_config: ClientConfig
    ) -> None:
        with _client(se_handler, client_config) as client:
            first = client.cep("01001000")
            second = client.cep("01001-000")
        assert first == second
        assert se_handler.count == 1

    def test_cache_entry_expires_after_ttl(
        self, se_handler: Any, client_config: ClientConfig, clock: Any
    ) -> None:
        cache = MemoryCache(clock=clock)
        with _client(se_handler, client_config, cache=cache) as client:
            client.cep("01001000")
            clock.advance(3599)
            client.cep("01001000")
            assert se_handler.count == 1
            clock.advance(2)
            client.cep("01001000")
        assert se_handler.count == 2

    def test_result_is_stored_under_derived_key(
        self, se_handler: Any, client_config: ClientConfig, se_address: Address
    ) -> None:
        cache = MemoryCache()
        with _client(se_handler, client_config, cache=cache) as client:
            client.cep("01001-000")
        assert cache.get(cache_key("01001000"), Address) == se_address

    def test_prefilled_cache_skips_network(
        self, se_handler: Any, client_config: ClientConfig
    ) -> None:
        cache = MemoryCache()
        cache.set(cache_key("01001000"), Address(cep="cached"))
        with _client(se_handler, client_config, cache=cache) as client:
            assert client.cep("01001000").cep == "cached"
        assert se_handler.count == 0

    def test_invalid_cep_makes_no_request(
        self, se_handler: Any, client_config: ClientConfig
    ) -> None:
        with _client(se_handler, client_config) as client:
            with pytest.raises(InvalidUsageError):
                client.cep("123")
        assert se_handler.count == 0

    def test_unknown_cep_raises_not_found_and_is_not_cached(
        self, client_config: ClientConfig, make_handler: Any
    ) -> None:
        handler = make_handler(lambda r: httpx.Response(200, json={"erro": True}))
        with _client(handler, client_config) as client:
            with pytest.raises(NotFoundError):
                client.cep("99999999")
            with pytest.raises(NotFoundError):
                client.cep("99999999")
        assert handler.count == 2

    def test_string_erro_flag(
        self, client_config: ClientConfig, make_handler: Any
    ) -> None:
        handler = make_handler(lambda r: httpx.Response(200, json={"erro": "true"}))
        with _client(handler, client_config) as client:
            with pytest.raises(NotFoundError):
                client.cep("99999999")

    def test_server_error_carries_url_and_status(
        self, client_config: ClientConfig, make_handler: Any
    ) -> None:
        handler = make_handler(lambda r: httpx.Response(500))
        with _client(handler, client_config) as client:
            with pytest.raises(HTTPStatusError) as exc_info:
                client.cep("01001000")
        assert "https://viacep.test/ws/01001000/json/" in str(exc_info.value)
        assert "500" in str(exc_info.value)

    def test_cache_write_failure_still_returns_result(
        self, se_handler: Any, client_config: ClientConfig
    ) -> None:
        cache = MagicMock(spec=Cache)
        cache.get.return_value = None
        cache.set.side_effect = SerializationError("nope")
        with _client(se_handler, client_config, cache=cache) as client:
            assert client.cep("01001000").cep == "01001-000"
        cache.set.assert_called_once()

    def test_cache_set_uses_configured_ttl(
        self, se_handler: Any, client_config: ClientConfig, se_address: Address
    ) -> None:
        cache = MagicMock(spec=Cache)
        cache.get.return_value = None
        with _client(se_handler, client_config, cache=cache) as client:
            client.cep("01001000")
        key, value, ttl = cache.set.call_args.args
        assert key == cache_key("01001000")
        assert value == se_address
        assert ttl == 3600


# ---------------------------------------------------------------------------
# Search by state / city / street
# ---------------------------------------------------------------------------


class TestAddresses:
    def test_returns_list_and_caches_it(
        self, client_config: ClientConfig, make_handler: Any, se_payload: dict[str, Any]
    ) -> None:
        handler = make_handler(lambda r: httpx.Response(200, json=[se_payload]))
        with _client(handler, client_config) as client:
            first = client.addresses("SP", "São Paulo", "Praça da Sé")
            second = client.addresses("sp", "São Paulo", "Praça da Sé")
        assert first == [Address(**se_payload)]
        assert second == first
        assert handler.count == 1
        assert handler.requests[0].url.raw_path == (
            b"/ws/SP/S%C3%A3o%20Paulo/Pra%C3%A7a%20da%20S%C3%A9/json/"
        )

    def test_empty_result_is_cached(
        self, client_config: ClientConfig, make_handler: Any
    ) -> None:
        handler = make_handler(lambda r: httpx.Response(200, json=[]))
        with _client(handler, client_config) as client:
            assert client.addresses("RS", "Porto Alegre", "Rua Inexistente") == []
            assert client.addresses("RS", "Porto Alegre", "Rua Inexistente") == []
        assert handler.count == 1

    def test_distinct_searches_use_distinct_keys(
        self, client_config: ClientConfig, make_handler: Any, se_payload: dict[str, Any]
    ) -> None:
        handler = make_handler(lambda r: httpx.Response(200, json=[se_payload]))
        with _client(handler, client_config) as client:
            client.addresses("SP", "São Paulo", "Praça da Sé")
            client.addresses("SP", "São Paulo", "Avenida Paulista")
        assert handler.count == 2

    def test_invalid_arguments_make_no_request(
        self, client_config: ClientConfig, make_handler: Any
    ) -> None:
        handler = make_handler(lambda r: httpx.Response(200, json=[]))
        with _client(handler, client_config) as client:
            with pytest.raises(InvalidUsageError):
                client.addresses("SP", "Sa", "Praça")
        assert handler.count == 0


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TestConfiguration:
    def test_disabled_cache_always_hits_network(
        self, se_handler: Any, client_config: ClientConfig
    ) -> None:
        config = client_config.model_copy(update={"cache": CacheConfig(enabled=False)})
        with _client(se_handler, config, cache=MemoryCache()) as client:
            assert client.cache is None
            client.cep("01001000")
            client.cep("01001000")
        assert se_handler.count == 2

    def test_independent_clients_can_share_a_cache(
        self, se_handler: Any, client_config: ClientConfig
    ) -> None:
        shared = MemoryCache()
        with _client(se_handler, client_config, cache=shared) as a:
            a.cep("01001000")
        with _client(se_handler, client_config, cache=shared) as b:
            b.cep("01001000")
        assert se_handler.count == 1

    def test_independent_clients_have_separate_default_caches(
        self, se_handler: Any, client_config: ClientConfig
    ) -> None:
        with _client(se_handler, client_config) as a, _client(se_handler, client_config) as b:
            a.cep("01001000")
            b.cep("01001000")
            assert a.cache is not b.cache
        assert se_handler.count == 2

    def test_from_config_reads_file_and_env(
        self, isolated_config, monkeypatch: pytest.MonkeyPatch, se_handler: Any
    ) -> None:
        save_config(ClientConfig(base_url="https://from-file.test"))
        monkeypatch.setenv("VIACEP_CACHE_ENABLED", "false")
        client = ViaCep.from_config(
            http_client=httpx.Client(transport=httpx.MockTransport(se_handler))
        )
        with client:
            client.cep("01001000")
            assert client.cache is None
        assert se_handler.requests[0].url.host == "from-file.test"

    def test_injected_cache_not_closed(
        self, se_handler: Any, client_config: ClientConfig
    ) -> None:
        cache = MagicMock(spec=Cache)
        cache.get.return_value = None
        with _client(se_handler, client_config, cache=cache):
            pass
        cache.close.assert_not_called()
