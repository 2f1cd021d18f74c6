"""Typed configuration built from an application and the shared environment.

Purpose
-------
Turn two validated configuration trees (the application's own component and
the shared ``"Environment"`` component) into one object of the caller's type.
No reflection is involved: each application declares its required keys, their
validators, and an explicit conversion function in a :class:`ConfigSchema`.

Contents
--------
* :data:`ENVIRONMENT_COMPONENT_NAME` – name of the shared component.
* :class:`ConfigSchema` – required keys, validators and the conversion function.
* :class:`ApplicationConfigProvider` – runs the pipeline on every call.
* :func:`strip_component_prefix` – removes ``"<Component>."`` from a key.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Callable, Generic, Mapping, Optional, TypeVar

from ..domain.config import SEPARATOR
from ..observability import log_debug, make_event, trace_scope
from .ports import ConfigProviderFactory, Validator

ENVIRONMENT_COMPONENT_NAME = "Environment"

T = TypeVar("T")

Converter = Callable[[dict[str, Optional[str]], dict[str, Optional[str]]], T]


def strip_component_prefix(key: str, component_name: str) -> str:
    """Remove everything up to and including the first ``"<component_name>."``.

    Keys that do not contain the prefix are returned unchanged.

    Examples
    --------
    >>> strip_component_prefix("Billing.ConfigObject.Name", "Billing")
    'ConfigObject.Name'
    >>> strip_component_prefix("Other.Key", "Billing")
    'Other.Key'
    """

    prefix = f"{component_name}{SEPARATOR}"
    index = key.find(prefix)
    if index < 0:
        return key
    return key[index + len(prefix) :]


def _freeze(mapping: Mapping[str, Validator]) -> Mapping[str, Validator]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class ConfigSchema(Generic[T]):
    """Declare what an application needs from configuration.

    Parameters
    ----------
    component_name:
        The application's own component.
    create:
        ``create(application_config, environment_config) -> T``; both mappings
        have their component prefix removed (``"ConfigObject.Name"``).
    application / environment:
        Short dotted key to validator, for each of the two components.

    Examples
    --------
    >>> from habitat_client.validators import exists, is_valid_integer
    >>> schema = ConfigSchema("Billing", create=lambda app, env: (app, env), application={"TimeOut": is_valid_integer})
    >>> schema = schema.with_environment_mapping("ConnectionString", exists)
    >>> list(schema.application_validators), list(schema.environment_validators)
    (['Billing.TimeOut'], ['Environment.ConnectionString'])
    """

    component_name: str
    create: Converter[T]
    application: Mapping[str, Validator] = field(default_factory=dict)
    environment: Mapping[str, Validator] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "application", _freeze(self.application))
        object.__setattr__(self, "environment", _freeze(self.environment))

    def with_application_mapping(self, key: str, validator: Validator) -> ConfigSchema[T]:
        """Return a copy requiring *key* in the application component; an existing key is kept."""

        return replace(self, application=_add_mapping(self.application, key, validator))

    def with_environment_mapping(self, key: str, validator: Validator) -> ConfigSchema[T]:
        """Return a copy requiring *key* in the environment component; an existing key is kept."""

        return replace(self, environment=_add_mapping(self.environment, key, validator))

    @property
    def application_validators(self) -> Mapping[str, Validator]:
        """Fully-qualified validation mapping handed to the application's provider."""

        return _qualify(self.component_name, self.application)

    @property
    def environment_validators(self) -> Mapping[str, Validator]:
        return _qualify(ENVIRONMENT_COMPONENT_NAME, self.environment)


def _add_mapping(existing: Mapping[str, Validator], key: str, validator: Validator) -> dict[str, Validator]:
    updated = dict(existing)
    updated.setdefault(key, validator)
    return updated


def _qualify(component_name: str, mapping: Mapping[str, Validator]) -> Mapping[str, Validator]:
    return MappingProxyType({f"{component_name}{SEPARATOR}{key}": validator for key, validator in mapping.items()})


class ApplicationConfigProvider(Generic[T]):
    """Produce the strongly typed configuration described by a :class:`ConfigSchema`.

    Why
    ----
    Application code wants one typed object, while validation, caching and
    fallback happen per component underneath.

    Notes
    -----
    :meth:`get_configuration` re-runs the whole pipeline on every call so
    server-side changes are picked up without a restart; call it often rather
    than once at startup.
    """

    def __init__(self, schema: ConfigSchema[T], factory: ConfigProviderFactory) -> None:
        self._schema = schema
        self._factory = factory

    @property
    def schema(self) -> ConfigSchema[T]:
        return self._schema

    def get_configuration(self) -> T:
        """Return the typed configuration.

        Raises
        ------
        UnableToAccessConfiguration
            When either component has no valid configuration.
        """

        schema = self._schema
        with trace_scope():
            application_root = self._factory.create(
                schema.component_name, schema.application_validators
            ).get_and_validate_configuration()
            environment_root = self._factory.create(
                ENVIRONMENT_COMPONENT_NAME, schema.environment_validators
            ).get_and_validate_configuration()

            application_config = {
                strip_component_prefix(key, schema.component_name): value
                for key, value in application_root.to_dictionary().items()
            }
            environment_config = {
                strip_component_prefix(key, ENVIRONMENT_COMPONENT_NAME): value
                for key, value in environment_root.to_dictionary().items()
            }
            log_debug(
                "typed_config_created",
                **make_event(
                    schema.component_name,
                    None,
                    {"application_keys": len(application_config), "environment_keys": len(environment_config)},
                ),
            )
        return schema.create(application_config, environment_config)
