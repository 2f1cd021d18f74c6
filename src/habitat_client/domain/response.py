"""Uniform envelope returned by the service transport.

The transport never raises; it reports exactly one outcome per call:

* a parsed :class:`ConfigRoot` from a 2xx response (``error is None``),
* an empty root for 404 / 204 (``config.data is None``, ``error is None``),
* a :class:`ConfigServiceError` for connectivity, timeout, non-2xx and parse
  failures, with the underlying exception chained as ``__cause__``.
"""

from __future__ import annotations

from dataclasses import dataclass

from .config import ConfigRoot
from .errors import ConfigServiceError


@dataclass(frozen=True, slots=True)
class ConfigServiceResponse:
    config: ConfigRoot
    status_code: int | None = None
    error: ConfigServiceError | None = None

    @property
    def has_data(self) -> bool:
        """``True`` when the service delivered a tree that can be validated."""

        return self.error is None and self.config.data is not None
