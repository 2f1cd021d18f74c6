"""Domain-level configuration tree value objects.

Purpose
-------
Anchor the immutable tree that carries one component's configuration through
the system, plus the flattening that turns it into the dotted-key mapping used
for validation and lookup. This module contains no I/O.

Contents
--------
* :class:`ConfigNode` – named tree node with an optional scalar value.
* :class:`ConfigRoot` – one component's tree plus its identity and timestamp.
* :func:`flatten` – depth-first reduction to ``{"A.B.C": value}``.
* :meth:`ConfigRoot.from_dict` / :meth:`ConfigRoot.to_dict` – the JSON shape
  shared by the config service and the durable cache.

System Role
-----------
Every configuration request ends with a validated :class:`ConfigRoot` handed
to the caller; adapters build instances from the wire or from disk.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator

from .errors import InvalidFormat

SEPARATOR = "."


@dataclass(frozen=True, slots=True)
class ConfigNode:
    """Named node of a configuration tree.

    A node with children is an interior node and its ``value`` is ignored;
    a node without children is a leaf. Sibling order is preserved.

    Examples
    --------
    >>> node = ConfigNode("ConfigObject", children=(ConfigNode("Name", "Taco"), ConfigNode("Number", "6")))
    >>> node.is_leaf
    False
    >>> [child.name for child in node.children]
    ['Name', 'Number']
    """

    name: str
    value: str | None = None
    children: tuple[ConfigNode, ...] = ()

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def to_dict(self) -> dict[str, Any]:
        return {
            "Name": self.name,
            "Value": self.value,
            "Children": [child.to_dict() for child in self.children],
        }

    @classmethod
    def from_dict(cls, payload: object) -> ConfigNode:
        """Build a node (recursively) from its JSON mapping form.

        Raises
        ------
        InvalidFormat
            When *payload* is not a mapping, has no name, or carries a
            non-scalar value.
        """

        if not isinstance(payload, Mapping):
            raise InvalidFormat(f"Config node must be an object, got {type(payload).__name__}")
        name = _field(payload, "Name")
        if not isinstance(name, str):
            raise InvalidFormat("Config node is missing its name")
        raw_children = _field(payload, "Children") or []
        if not isinstance(raw_children, list):
            raise InvalidFormat(f"Children of config node {name!r} must be an array")
        children = tuple(cls.from_dict(child) for child in raw_children)
        return cls(name=name, value=_scalar_text(name, _field(payload, "Value")), children=children)


@dataclass(frozen=True, slots=True)
class ConfigRoot:
    """One component's configuration.

    ``data`` is ``None`` when the service reported that the component has no
    configuration; such a root never satisfies a non-empty validation mapping.
    """

    component_name: str
    last_modified: datetime | None = None
    data: ConfigNode | None = None

    @classmethod
    def empty(cls, component_name: str) -> ConfigRoot:
        return cls(component_name=component_name)

    def to_dictionary(self) -> dict[str, str | None]:
        """Return the flattened dotted-key mapping of this root's tree."""

        return flatten(self.data)

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the JSON-ready shape used by the service and the cache.

        Examples
        --------
        >>> ConfigRoot("foo").to_dict()
        {'ComponentName': 'foo', 'LastModified': None, 'Data': None}
        """

        return {
            "ComponentName": self.component_name,
            "LastModified": self.last_modified.isoformat() if self.last_modified else None,
            "Data": self.data.to_dict() if self.data is not None else None,
        }

    @classmethod
    def from_dict(cls, payload: object) -> ConfigRoot:
        """Parse the JSON object form; field names are matched case-insensitively.

        Examples
        --------
        >>> root = ConfigRoot.from_dict({"componentName": "foo", "data": {"name": "foo", "children": [{"name": "N1", "value": "V1"}]}})
        >>> root.to_dictionary()
        {'foo.N1': 'V1'}
        """

        if not isinstance(payload, Mapping):
            raise InvalidFormat(f"Config root must be an object, got {type(payload).__name__}")
        component_name = _field(payload, "ComponentName")
        if not isinstance(component_name, str):
            raise InvalidFormat("Config root is missing its component name")
        raw_data = _field(payload, "Data")
        data = ConfigNode.from_dict(raw_data) if raw_data is not None else None
        return cls(
            component_name=component_name,
            last_modified=_parse_timestamp(_field(payload, "LastModified")),
            data=data,
        )


def flatten(node: ConfigNode | None) -> dict[str, str | None]:
    """Reduce *node* to a dotted-path mapping of its leaf values, depth first.

    Paths include the root node's own name. ``None`` flattens to ``{}``. When
    two leaves share a path the later one wins.

    Examples
    --------
    >>> tree = ConfigNode("app", children=(
    ...     ConfigNode("TimeOut", "500"),
    ...     ConfigNode("ConfigObject", children=(ConfigNode("Name", "Taco"), ConfigNode("Number", "6"))),
    ... ))
    >>> flatten(tree)
    {'app.TimeOut': '500', 'app.ConfigObject.Name': 'Taco', 'app.ConfigObject.Number': '6'}
    >>> flatten(None)
    {}
    """

    if node is None:
        return {}
    return dict(_walk(node, ()))


def _walk(node: ConfigNode, parents: tuple[str, ...]) -> Iterator[tuple[str, str | None]]:
    path = (*parents, node.name)
    if node.is_leaf:
        yield SEPARATOR.join(path), node.value
        return
    for child in node.children:
        yield from _walk(child, path)


def _field(payload: Mapping[str, Any], name: str) -> Any:
    """Look up *name* in *payload* ignoring case, mirroring lenient JSON binders."""

    if name in payload:
        return payload[name]
    wanted = name.lower()
    for key, value in payload.items():
        if isinstance(key, str) and key.lower() == wanted:
            return value
    return None


def _scalar_text(name: str, value: object) -> str | None:
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    raise InvalidFormat(f"Value of config node {name!r} must be a scalar")


def _parse_timestamp(raw: object) -> datetime | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise InvalidFormat("LastModified must be an ISO-8601 string")
    text = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    try:
        return datetime.fromisoformat(text)
    except ValueError as exc:
        raise InvalidFormat(f"LastModified is not a valid timestamp: {raw!r}") from exc
