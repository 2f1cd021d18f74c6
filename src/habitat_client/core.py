"""Composition root for ``habitat_client``.

Purpose
-------
Wire the HTTP transport, the durable cache and the provider together from one
explicit settings object. No process-wide mutable defaults: every factory owns
its own ``httpx.Client`` configured with the base address and timeout it was
given.

Contents
--------
* :data:`DEFAULT_SERVER_URL` – conventional address of the config service.
* :class:`ClientSettings` – base URL, timeout, application identity, cache location.
* :class:`DefaultConfigProviderFactory` – builds :class:`ConfigProvider` instances.
* :func:`read_configuration` – one-call typed configuration for a schema.

System Role
-----------
This is the canonical location for changing how adapters are wired. Tests
inject an ``httpx.Client`` backed by ``httpx.MockTransport`` and a temporary
cache directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Mapping, TypeVar

import httpx

from .adapters.cache.durable import DurableConfigCache
from .adapters.path_resolvers.default import DefaultCacheDirectoryResolver
from .adapters.service.http import HttpConfigService
from .application.ports import Validator
from .application.provider import ConfigProvider
from .application.typed import ApplicationConfigProvider, ConfigSchema
from .observability import log_debug

T = TypeVar("T")

#: Address shared by every machine in the domain; all other environment
#: settings are discovered through it.
DEFAULT_SERVER_URL = "http://HabitatServer/Habitat.Server.Data/"

DEFAULT_TIMEOUT_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class ClientSettings:
    """Explicit configuration for reaching the config service and caching its data.

    Parameters
    ----------
    application_name:
        Identity of the consuming application; names its cache directory.
    server_url:
        Base address of the config service. Requests go to
        ``<server_url>Config/<component>``.
    timeout:
        Request timeout in seconds. Expiry is reported as a transport failure.
    cache_directory:
        Explicit cache location; resolved per platform when ``None``.

    Examples
    --------
    >>> settings = ClientSettings("Billing", cache_directory=Path("/srv/cache"))
    >>> settings.resolved_cache_directory().as_posix()
    '/srv/cache'
    """

    application_name: str
    server_url: str = DEFAULT_SERVER_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    cache_directory: Path | None = None

    def resolved_cache_directory(self) -> Path:
        if self.cache_directory is not None:
            return Path(self.cache_directory)
        return DefaultCacheDirectoryResolver(self.application_name).resolve()


class DefaultConfigProviderFactory:
    """Create :class:`ConfigProvider` instances sharing one transport and one cache.

    Parameters
    ----------
    settings:
        Connection and cache settings.
    client:
        Optional pre-built ``httpx.Client``. When supplied the caller keeps
        ownership and :meth:`close` leaves it open.
    """

    def __init__(self, settings: ClientSettings, *, client: httpx.Client | None = None) -> None:
        self._settings = settings
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(base_url=settings.server_url, timeout=settings.timeout)
        self._service = HttpConfigService(self._client)
        self._cache = DurableConfigCache(settings.resolved_cache_directory())
        log_debug(
            "provider_factory_ready",
            component=None,
            source=None,
            server_url=settings.server_url,
            cache_directory=str(self._cache.directory),
        )

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def cache(self) -> DurableConfigCache:
        return self._cache

    def create(self, component_name: str, validators: Mapping[str, Validator]) -> ConfigProvider:
        """Return a provider for *component_name* checking *validators*."""

        return ConfigProvider(component_name, validators, self._service, self._cache)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> DefaultConfigProviderFactory:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()


def read_configuration(
    schema: ConfigSchema[T],
    settings: ClientSettings | None = None,
    *,
    client: httpx.Client | None = None,
) -> T:
    """Return the typed configuration described by *schema*.

    Why
    ----
    Most applications only need "give me my config"; this builds a factory,
    runs the pipeline once, and releases the HTTP client.

    Parameters
    ----------
    schema:
        Required keys, validators and conversion function.
    settings:
        Defaults to ``ClientSettings(schema.component_name)``.
    client:
        Optional ``httpx.Client`` forwarded to the factory.

    Raises
    ------
    UnableToAccessConfiguration
        When either the application or the environment component has no valid
        configuration in the service or the cache.
    """

    effective = settings or ClientSettings(schema.component_name)
    with DefaultConfigProviderFactory(effective, client=client) as factory:
        return ApplicationConfigProvider(schema, factory).get_configuration()
