"""Resilient configuration client for the Habitat config service.

Applications describe the settings they need in a :class:`ConfigSchema`; the
client fetches each component from the config service, validates it, falls
back to a durable local cache when the service is down or serving broken data,
and converts the result into the application's own type.
"""

from __future__ import annotations

from .application.provider import ConfigProvider, validate
from .application.typed import (
    ENVIRONMENT_COMPONENT_NAME,
    ApplicationConfigProvider,
    ConfigSchema,
    strip_component_prefix,
)
from .core import DEFAULT_SERVER_URL, ClientSettings, DefaultConfigProviderFactory, read_configuration
from .domain.config import ConfigNode, ConfigRoot, flatten
from .domain.errors import (
    ConfigServiceError,
    ConfigValidationError,
    HabitatError,
    InvalidFormat,
    UnableToAccessConfiguration,
)
from .observability import bind_trace_id, get_logger, trace_scope

__all__ = [
    "ApplicationConfigProvider",
    "ClientSettings",
    "ConfigNode",
    "ConfigProvider",
    "ConfigRoot",
    "ConfigSchema",
    "ConfigServiceError",
    "ConfigValidationError",
    "DEFAULT_SERVER_URL",
    "DefaultConfigProviderFactory",
    "ENVIRONMENT_COMPONENT_NAME",
    "HabitatError",
    "InvalidFormat",
    "UnableToAccessConfiguration",
    "bind_trace_id",
    "flatten",
    "get_logger",
    "read_configuration",
    "strip_component_prefix",
    "trace_scope",
    "validate",
]
