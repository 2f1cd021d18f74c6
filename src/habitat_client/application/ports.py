"""Application-layer ports describing adapter responsibilities.

Purpose
-------
Define the structural contracts that adapters must satisfy so the provider can
orchestrate behaviour without depending on concrete implementations.

Contents
--------
* :data:`Validator` – predicate over one flattened config value.
* :class:`ConfigService` – fetches one component's tree from the config service.
* :class:`ConfigCache` – durable last-known-good store keyed by component name.
* :class:`ConfigSource` – anything that yields a validated :class:`ConfigRoot`.
* :class:`ConfigProviderFactory` – builds a :class:`ConfigSource` per component.

System Role
-----------
These protocols enforce dependency inversion. The HTTP transport and the file
cache each implement one protocol; tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Callable, Mapping, Protocol, runtime_checkable

from ..domain.config import ConfigRoot
from ..domain.response import ConfigServiceResponse

Validator = Callable[[str], bool]
"""Acceptance predicate for one config value; exceptions count as rejection."""


@runtime_checkable
class ConfigService(Protocol):
    """Blocking access to the remote config service.

    Why
    ----
    Keep connectivity, status handling and body parsing out of the provider.
    Implementations never raise; every failure is reported in the envelope.
    """

    def fetch(self, component_name: str) -> ConfigServiceResponse:
        """Return the service's answer for *component_name*."""


@runtime_checkable
class ConfigCache(Protocol):
    """Durable store of the last validated tree per component.

    Why
    ----
    Let the provider fall back to known-good data while the service is down or
    serving broken configuration.
    """

    def load(self, component_name: str) -> ConfigRoot | None:
        """Return the most recently saved entry for *component_name*, if any."""

    def save(self, component_name: str, config: ConfigRoot) -> None:
        """Atomically replace the entry stored for *component_name*."""


@runtime_checkable
class ConfigSource(Protocol):
    """Produce one validated configuration tree or raise."""

    def get_and_validate_configuration(self) -> ConfigRoot:
        """Return a validated tree or raise ``UnableToAccessConfiguration``."""


@runtime_checkable
class ConfigProviderFactory(Protocol):
    """Create a :class:`ConfigSource` for a component and its validators."""

    def create(self, component_name: str, validators: Mapping[str, Validator]) -> ConfigSource:
        """Return a source responsible for *component_name*."""

