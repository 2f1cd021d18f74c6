"""Fallback, validation and caching policy for one configuration component.

Purpose
-------
Decide between freshly fetched and cached configuration. The provider talks to
the config service once, validates what it got, refreshes the durable cache
when (and only when) the service data is valid, validates the cached entry,
and returns the first valid tree or raises one typed error.

Contents
--------
* :func:`validate` – run a validation mapping over a flattened tree.
* :class:`ConfigProvider` – the per-component state machine.

System Role
-----------
Created by :class:`habitat_client.core.DefaultConfigProviderFactory` and
consumed by :class:`habitat_client.application.typed.ApplicationConfigProvider`.
The provider holds no mutable state; one instance may serve any number of
sequential or concurrent requests.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from ..domain.config import ConfigRoot
from ..domain.errors import (
    ConfigValidationError,
    InvalidFormat,
    UnableToAccessConfiguration,
)
from ..observability import log_debug, log_error, log_info, log_warning, make_event
from .ports import ConfigCache, ConfigService, Validator


def validate(flattened: Mapping[str, str | None], validators: Mapping[str, Validator]) -> dict[str, bool]:
    """Return ``{key: passed}`` for every key of *validators*, in declaration order.

    A key passes only when it is present in *flattened* and its predicate
    returns a truthy value. Exceptions raised by a predicate count as failure.

    Examples
    --------
    >>> results = validate({"app.A": "1"}, {"app.A": str.isdigit, "app.B": str.isdigit, "app.C": lambda v: 1 / 0})
    >>> results
    {'app.A': True, 'app.B': False, 'app.C': False}
    """

    results: dict[str, bool] = {}
    for key, predicate in validators.items():
        if key not in flattened:
            results[key] = False
            continue
        try:
            results[key] = bool(predicate(flattened[key]))  # type: ignore[arg-type]
        except Exception:  # noqa: BLE001 - a throwing validator rejects the value
            results[key] = False
    return results


def _failures(results: Mapping[str, bool]) -> list[str]:
    return [key for key, passed in results.items() if not passed]


class ConfigProvider:
    """Obtain a validated :class:`ConfigRoot` for one component.

    Why
    ----
    Applications must not start on broken configuration, yet a config service
    outage must not take them down while a known-good copy exists locally.

    Parameters
    ----------
    component_name:
        Component identity; also the cache key.
    validators:
        Fully-qualified dotted key (``"<component>.<path>"``) to predicate.
        Copied on construction; an empty mapping means nothing to check.
    service:
        Transport adapter satisfying :class:`ConfigService`.
    cache:
        Durable store satisfying :class:`ConfigCache`.
    """

    def __init__(
        self,
        component_name: str,
        validators: Mapping[str, Validator],
        service: ConfigService,
        cache: ConfigCache,
    ) -> None:
        self._component_name = component_name
        self._validators: Mapping[str, Validator] = MappingProxyType(dict(validators))
        self._service = service
        self._cache = cache

    @property
    def component_name(self) -> str:
        return self._component_name

    @property
    def validators(self) -> Mapping[str, Validator]:
        return self._validators

    def get_and_validate_configuration(self) -> ConfigRoot:
        """Return the validated configuration tree for this component.

        Decision order
        --------------
        1. Service data that passes validation wins and is written to the cache.
        2. Otherwise a cached tree that passes validation is returned; the
           cache is left untouched.
        3. Otherwise :class:`UnableToAccessConfiguration` is raised. Its cause
           is the transport error when the service call itself failed, else a
           :class:`ConfigValidationError` listing the service's failing keys
           (or the cache's when the service supplied no tree). Any other
           exception from the collaborators is chained the same way.

        Raises
        ------
        UnableToAccessConfiguration
            When neither source yields valid configuration.
        """

        try:
            return self._resolve()
        except Exception as exc:  # noqa: BLE001 - every failure surfaces as one access error
            log_error(
                "config_unavailable",
                **make_event(self._component_name, None, {"error": type(exc).__name__, "detail": str(exc)}),
            )
            raise UnableToAccessConfiguration(
                f"Config can not be retrieved for application '{self._component_name}'.",
                component_name=self._component_name,
            ) from exc

    def _resolve(self) -> ConfigRoot:
        response = self._service.fetch(self._component_name)

        server_valid = False
        server_failures: list[str] | None = None
        if response.has_data:
            results = validate(response.config.to_dictionary(), self._validators)
            server_failures = _failures(results)
            server_valid = not server_failures
            self._log_validation("service", server_failures)
            if server_valid:
                self._save(response.config)

        cached = self._load()
        cache_valid = False
        cache_failures: list[str] | None = None
        if cached is not None:
            cache_failures = _failures(validate(cached.to_dictionary(), self._validators))
            cache_valid = not cache_failures
            self._log_validation("cache", cache_failures)

        if server_valid:
            log_info("config_selected", **make_event(self._component_name, "service"))
            return response.config
        if cache_valid:
            log_info("config_selected", **make_event(self._component_name, "cache"))
            return cached  # type: ignore[return-value]

        if response.error is not None:
            raise response.error
        if server_failures is not None:
            raise ConfigValidationError.for_keys(server_failures)
        if cache_failures is not None:
            raise ConfigValidationError.for_keys(cache_failures)
        raise ConfigValidationError.for_keys(_failures(validate({}, self._validators)))

    def _load(self) -> ConfigRoot | None:
        try:
            return self._cache.load(self._component_name)
        except InvalidFormat as exc:
            log_warning("config_cache_invalid", **make_event(self._component_name, "cache", {"error": str(exc)}))
            return None
        except OSError as exc:
            log_warning("config_cache_load_failed", **make_event(self._component_name, "cache", {"error": str(exc)}))
            return None

    def _save(self, config: ConfigRoot) -> None:
        try:
            self._cache.save(self._component_name, config)
        except OSError as exc:
            log_error("config_cache_save_failed", **make_event(self._component_name, "cache", {"error": str(exc)}))

    def _log_validation(self, source: str, failures: list[str]) -> None:
        log_debug(
            "config_validated",
            **make_event(self._component_name, source, {"valid": not failures, "failures": failures}),
        )
