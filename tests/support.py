"""Shared fixtures and fakes for the test-suite.

Purpose
-------
Provide canned configuration trees, in-memory doubles for the application
ports, and ``httpx.MockTransport`` builders that simulate the config service
in every state the client has to survive (healthy, missing component, server
error, gibberish, wrong JSON shape, unreachable, timing out).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Callable, Mapping
from urllib.parse import unquote

import httpx

from habitat_client.application.provider import ConfigProvider
from habitat_client.domain.config import ConfigNode, ConfigRoot
from habitat_client.domain.errors import ConfigServiceError
from habitat_client.domain.response import ConfigServiceResponse

BASE_URL = "http://habitat.test/Habitat.Server.Data/"
TEST_DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)


def get_config_root(component_name: str) -> ConfigRoot:
    """Return the canned tree served for every component: ``N1=V1`` and ``N2=V2``."""

    data = ConfigNode(component_name, children=(ConfigNode("N1", "V1"), ConfigNode("N2", "V2")))
    return ConfigRoot(component_name, last_modified=TEST_DATE, data=data)


def with_first_value(root: ConfigRoot, value: str) -> ConfigRoot:
    """Return a copy of *root* whose first leaf carries *value*."""

    assert root.data is not None
    first, *rest = root.data.children
    children = (replace(first, value=value), *rest)
    return replace(root, data=replace(root.data, children=children))


def with_extra_leaf(root: ConfigRoot, name: str, value: str) -> ConfigRoot:
    assert root.data is not None
    children = (*root.data.children, ConfigNode(name, value))
    return replace(root, data=replace(root.data, children=children))


@dataclass
class FakeConfigService:
    """Return a fixed :class:`ConfigServiceResponse` and record the requests."""

    response: ConfigServiceResponse
    requests: list[str] = field(default_factory=list)

    @classmethod
    def serving(cls, root: ConfigRoot) -> FakeConfigService:
        return cls(ConfigServiceResponse(config=root, status_code=200))

    @classmethod
    def not_found(cls, component_name: str) -> FakeConfigService:
        return cls(ConfigServiceResponse(config=ConfigRoot.empty(component_name), status_code=404))

    @classmethod
    def unreachable(cls, component_name: str) -> FakeConfigService:
        error = ConfigServiceError(
            "Could not retrieve config. Error in web request: ConnectError",
            component_name=component_name,
        )
        error.__cause__ = httpx.ConnectError("Name or service not known")
        return cls(ConfigServiceResponse(config=ConfigRoot.empty(component_name), error=error))

    def fetch(self, component_name: str) -> ConfigServiceResponse:
        self.requests.append(component_name)
        return self.response


@dataclass
class InMemoryConfigCache:
    """Dictionary-backed cache double that counts writes."""

    entries: dict[str, ConfigRoot] = field(default_factory=dict)
    saves: int = 0

    def load(self, component_name: str) -> ConfigRoot | None:
        return self.entries.get(component_name)

    def save(self, component_name: str, config: ConfigRoot) -> None:
        self.saves += 1
        self.entries[component_name] = config


class ReadOnlyConfigCache(InMemoryConfigCache):
    """Cache double whose storage rejects writes, like a full or read-only disk."""

    def save(self, component_name: str, config: ConfigRoot) -> None:
        raise PermissionError(13, "Permission denied", component_name)


@dataclass
class FakeProviderFactory:
    """Build real providers over in-memory collaborators, one pair per component."""

    services: Mapping[str, FakeConfigService]
    cache: InMemoryConfigCache = field(default_factory=InMemoryConfigCache)
    created: list[str] = field(default_factory=list)

    def create(self, component_name: str, validators: Mapping[str, Callable[[str], bool]]) -> ConfigProvider:
        self.created.append(component_name)
        return ConfigProvider(component_name, validators, self.services[component_name], self.cache)


Handler = Callable[[httpx.Request], httpx.Response]


def component_from(request: httpx.Request) -> str:
    """Return the component name addressed by a ``GET .../Config/<name>`` request."""

    return unquote(request.url.path.rsplit("/", 1)[-1])


def serving(configs: Mapping[str, ConfigRoot]) -> Handler:
    """Handler answering 200 with the JSON tree for known components and 404 otherwise."""

    def handler(request: httpx.Request) -> httpx.Response:
        root = configs.get(component_from(request))
        if root is None:
            return httpx.Response(404)
        return httpx.Response(200, json=root.to_dict())

    return handler


def status(code: int) -> Handler:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(code, text="Internal failure")

    return handler


def gibberish(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, content=b"<html>Ceci n'est pas une config</html>", headers={"Content-Type": "text/html"})


def json_array(request: httpx.Request) -> httpx.Response:
    return httpx.Response(200, json=[{"Name": "N1", "Value": "V1"}])


def bad_address(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("Name or service not known", request=request)


def timing_out(request: httpx.Request) -> httpx.Response:
    raise httpx.ReadTimeout("timed out", request=request)


def make_client(handler: Handler) -> httpx.Client:
    """Return an ``httpx.Client`` whose requests are answered by *handler*."""

    return httpx.Client(base_url=BASE_URL, transport=httpx.MockTransport(handler))
