"""Adapter contract tests for the default ports implementation.

Purpose
-------
Verify the default adapters, the provider and the composition root continue
to satisfy the application-layer protocols in
``src/habitat_client/application/ports.py`` so dependency inversion remains
enforceable through automated tests.
"""

from __future__ import annotations

from pathlib import Path

from habitat_client.adapters.cache.durable import DurableConfigCache
from habitat_client.adapters.service.http import HttpConfigService
from habitat_client.application import ports
from habitat_client.core import ClientSettings, DefaultConfigProviderFactory
from tests.support import get_config_root, make_client, serving


def test_http_service_contract() -> None:
    with make_client(serving({"foo": get_config_root("foo")})) as client:
        service = HttpConfigService(client)
        assert isinstance(service, ports.ConfigService)
        assert service.fetch("foo").config == get_config_root("foo")


def test_durable_cache_contract(tmp_path: Path) -> None:
    cache = DurableConfigCache(tmp_path)
    assert isinstance(cache, ports.ConfigCache)

    cache.save("foo", get_config_root("foo"))
    assert cache.load("foo") == get_config_root("foo")


def test_factory_and_provider_contracts(tmp_path: Path) -> None:
    settings = ClientSettings("Demo", cache_directory=tmp_path)
    with make_client(serving({"foo": get_config_root("foo")})) as client:
        factory = DefaultConfigProviderFactory(settings, client=client)
        assert isinstance(factory, ports.ConfigProviderFactory)

        provider = factory.create("foo", {"foo.N1": lambda value: value == "V1"})
        assert isinstance(provider, ports.ConfigSource)
        assert provider.get_and_validate_configuration() == get_config_root("foo")
