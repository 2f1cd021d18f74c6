"""Structured logging for configuration requests.

Purpose
    Every configuration read touches the config service, the durable cache and
    the validator set; this module makes the log records of one read carry
    the same correlation id and the same stable field names, while leaving
    handler and formatter choice to the host application.

Contents
    - ``TRACE_ID``: context variable holding the active correlation id.
    - ``get_logger``: the package logger, silent until a handler is attached.
    - ``bind_trace_id`` / ``trace_scope``: set the correlation id permanently
      or for the duration of one read.
    - ``log_debug`` / ``log_info`` / ``log_warning`` / ``log_error``: emit a
      record whose ``context`` attribute holds the structured fields.
    - ``make_event``: builds the ``component`` / ``source`` field set.

System Integration
    The provider, the HTTP transport, the durable cache and the typed adapter
    log through these helpers. Domain objects never log.
"""

from __future__ import annotations

import logging
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Final, Iterator, Mapping

TRACE_ID: ContextVar[str | None] = ContextVar("habitat_client_trace_id", default=None)
"""Correlation id attached to every record emitted by the package."""

_LOGGER: Final[logging.Logger] = logging.getLogger("habitat_client")
_LOGGER.addHandler(logging.NullHandler())


def get_logger() -> logging.Logger:
    """Return the ``habitat_client`` logger.

    The logger carries only a :class:`logging.NullHandler`; applications
    attach their own handlers (or rely on propagation to the root logger).
    """

    return _LOGGER


def bind_trace_id(trace_id: str | None) -> None:
    """Bind *trace_id* to the current context, or clear it with ``None``.

    Why
        Lets the host application reuse the id of its own startup or request
        span so configuration diagnostics line up with the rest of its logs.

    Examples
    --------
    >>> bind_trace_id('startup-7')
    >>> TRACE_ID.get()
    'startup-7'
    >>> bind_trace_id(None)
    >>> TRACE_ID.get() is None
    True
    """

    TRACE_ID.set(trace_id)


@contextmanager
def trace_scope(trace_id: str | None = None) -> Iterator[str]:
    """Correlate the records of one configuration read.

    An explicit *trace_id* is bound for the duration of the block. Without
    one, an id already bound by the caller is kept, otherwise a random one is
    generated. The previous binding is restored on exit.

    Examples
    --------
    >>> with trace_scope('read-1') as active:
    ...     active, TRACE_ID.get()
    ('read-1', 'read-1')
    >>> TRACE_ID.get() is None
    True
    """

    active = trace_id or TRACE_ID.get() or uuid.uuid4().hex
    token = TRACE_ID.set(active)
    try:
        yield active
    finally:
        TRACE_ID.reset(token)


def log_debug(message: str, **fields: Any) -> None:
    _emit(logging.DEBUG, message, fields)


def log_info(message: str, **fields: Any) -> None:
    _emit(logging.INFO, message, fields)


def log_warning(message: str, **fields: Any) -> None:
    """Emit a recoverable problem, e.g. an unreadable cache record."""

    _emit(logging.WARNING, message, fields)


def log_error(message: str, **fields: Any) -> None:
    """Emit a failure the caller will see, or a lost cache refresh."""

    _emit(logging.ERROR, message, fields)


def make_event(
    component: str,
    source: str | None,
    payload: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Return the structured fields for a configuration lifecycle event.

    Inputs
        component: Configuration component the event concerns.
        source: ``"service"``, ``"cache"`` or ``None`` when the event is not
            tied to one source.
        payload: Extra fields; they may not replace ``component``/``source``.

    Examples
    --------
    >>> make_event('Environment', 'cache', {'keys': 3})
    {'component': 'Environment', 'source': 'cache', 'keys': 3}
    """

    extra = {key: value for key, value in (payload or {}).items() if key not in ("component", "source")}
    return {"component": component, "source": source, **extra}


def _emit(level: int, message: str, fields: Mapping[str, Any]) -> None:
    if _LOGGER.isEnabledFor(level):
        _LOGGER.log(level, message, extra={"context": {"trace_id": TRACE_ID.get(), **fields}})
