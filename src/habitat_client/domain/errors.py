"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by adapters, the provider, and
consuming applications. The hierarchy lives in the domain layer so outer layers
may depend on it without the domain depending on them.

Contents
--------
* :class:`HabitatError` – umbrella base class offering :meth:`HabitatError.render`.
* :class:`InvalidFormat` – a payload cannot be parsed into a configuration tree.
* :class:`ConfigServiceError` – the config service could not be reached or
  answered with a failure status.
* :class:`ConfigValidationError` – required settings are missing or rejected.
* :class:`UnableToAccessConfiguration` – the single outer failure raised to
  callers when no validated configuration is available.

System Role
-----------
Transport failures and validation failures are always surfaced wrapped in
:class:`UnableToAccessConfiguration`, with the original error chained as
``__cause__`` so the whole diagnostic trail stays inspectable.
"""

from __future__ import annotations

from typing import Iterable


class HabitatError(Exception):
    """Base type for all exceptions emitted by ``habitat_client``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling.
    """

    def render(self) -> str:
        """Return a readable multi-line description for logs and consoles.

        Examples
        --------
        >>> HabitatError("boom").render()
        'boom'
        """

        text = str(self)
        cause = self.__cause__
        if cause is None:
            return text
        inner = cause.render() if isinstance(cause, HabitatError) else str(cause)
        return f"{text}\nInner exception ({type(cause).__name__}): {inner}"


class InvalidFormat(HabitatError):
    """Raised when a payload cannot be parsed into a :class:`ConfigRoot`.

    Typical Sources
    ---------------
    Malformed service response bodies and unreadable cache records.
    """


class ConfigServiceError(HabitatError):
    """Transport-layer failure talking to the config service.

    Attributes
    ----------
    component_name:
        Component whose configuration was requested.
    status_code:
        HTTP status code when a response was received, otherwise ``None``
        (DNS failure, refused connection, timeout).
    """

    def __init__(self, message: str, *, component_name: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.component_name = component_name
        self.status_code = status_code


class ConfigValidationError(HabitatError):
    """One or more required config settings are missing or invalid.

    ``validation_errors`` lists the failing dotted keys in the order the
    validation mapping declares them.

    Examples
    --------
    >>> error = ConfigValidationError.for_keys(["foo.N3", "foo.N4"])
    >>> str(error)
    'One or more config settings invalid or missing (foo.N3, foo.N4).'
    >>> error.validation_errors
    ['foo.N3', 'foo.N4']
    """

    def __init__(self, message: str, validation_errors: Iterable[str]) -> None:
        super().__init__(message)
        self.validation_errors = list(validation_errors)

    @classmethod
    def for_keys(cls, keys: Iterable[str]) -> ConfigValidationError:
        """Build the standard error for *keys*."""

        failing = list(keys)
        if not failing:
            return cls("No configuration data found.", failing)
        return cls(f"One or more config settings invalid or missing ({', '.join(failing)}).", failing)

    def render(self) -> str:
        lines = [str(self), "Config variables failing validation (validation_errors):"]
        lines.extend(self.validation_errors)
        return "\n".join(lines)


class UnableToAccessConfiguration(HabitatError):
    """No valid configuration could be loaded from the service or the cache.

    This is generally fatal: without configuration an application cannot run.
    The proximate cause (a :class:`ConfigServiceError` or a
    :class:`ConfigValidationError`) is chained as ``__cause__``.
    """

    def __init__(self, message: str, *, component_name: str) -> None:
        super().__init__(message)
        self.component_name = component_name
