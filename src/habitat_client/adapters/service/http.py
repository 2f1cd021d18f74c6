"""HTTP transport adapter for the remote config service.

Purpose
-------
Implement :class:`habitat_client.application.ports.ConfigService` on top of
``httpx``. One blocking ``GET Config/{component}`` per call, with every failure
mode folded into a :class:`ConfigServiceResponse` instead of raising.

Contents
--------
* :data:`RESOURCE_TEMPLATE` – path template relative to the base address.
* :class:`HttpConfigService` – the adapter.

System Role
-----------
Created once per :class:`habitat_client.core.DefaultConfigProviderFactory` and
shared by every provider it builds; the underlying ``httpx.Client`` pools
connections across components.
"""

from __future__ import annotations

import json

import httpx

from ...domain.config import ConfigRoot
from ...domain.errors import ConfigServiceError, InvalidFormat
from ...domain.response import ConfigServiceResponse
from ...observability import log_debug, log_warning, make_event

RESOURCE_TEMPLATE = "Config/{component_name}"

_NO_DATA_STATUSES = frozenset({httpx.codes.NO_CONTENT, httpx.codes.NOT_FOUND})


class HttpConfigService:
    """Fetch component configuration over HTTP.

    Why
    ----
    The provider needs one uniform answer per request regardless of whether the
    host name failed to resolve, the request timed out, the server answered
    5xx, or the body was gibberish.

    Parameters
    ----------
    client:
        ``httpx.Client`` configured with the service ``base_url`` and timeout.
        The adapter does not own the client; the factory closes it.
    """

    def __init__(self, client: httpx.Client) -> None:
        self._client = client

    def fetch(self, component_name: str) -> ConfigServiceResponse:
        """Return the service response for *component_name*; never raises.

        Outcomes
        --------
        * 2xx with a JSON object body: parsed :class:`ConfigRoot`.
        * 204 / 404: empty root (``data is None``) and no error.
        * other status codes: :class:`ConfigServiceError` tagged with the status.
        * network errors, unusable addresses and unparsable bodies: :class:`ConfigServiceError`
          with the original exception chained as ``__cause__``.
        """

        url = RESOURCE_TEMPLATE.format(component_name=component_name)
        log_debug("config_service_request", **make_event(component_name, "service", {"url": url}))
        try:
            response = self._client.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            return self._failure(
                component_name,
                f"Could not retrieve config. Error in web request: {exc.__class__.__name__}",
                cause=exc,
            )

        status = response.status_code
        log_debug("config_service_response", **make_event(component_name, "service", {"status": status}))
        if status in _NO_DATA_STATUSES:
            return ConfigServiceResponse(config=ConfigRoot.empty(component_name), status_code=status)
        if not response.is_success:
            return self._failure(
                component_name,
                f"Could not retrieve config. Service returned status code {status}",
                status_code=status,
            )

        try:
            config = ConfigRoot.from_dict(response.json())
        except (json.JSONDecodeError, UnicodeDecodeError, InvalidFormat) as exc:
            return self._failure(
                component_name,
                "Could not retrieve config. Service returned an unreadable body",
                status_code=status,
                cause=exc,
            )
        return ConfigServiceResponse(config=config, status_code=status)

    @staticmethod
    def _failure(
        component_name: str,
        message: str,
        *,
        status_code: int | None = None,
        cause: BaseException | None = None,
    ) -> ConfigServiceResponse:
        error = ConfigServiceError(message, component_name=component_name, status_code=status_code)
        error.__cause__ = cause
        log_warning(
            "config_service_failed",
            **make_event(
                component_name,
                "service",
                {"status": status_code, "error": type(cause).__name__ if cause else None},
            ),
        )
        return ConfigServiceResponse(
            config=ConfigRoot.empty(component_name),
            status_code=status_code,
            error=error,
        )
