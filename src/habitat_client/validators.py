"""Reusable predicates for validation mappings.

Every predicate accepts one flattened config value (a string, occasionally
``None`` for a leaf without value) and returns ``bool``. None of them raise,
though the provider would treat an exception as a rejection anyway. Custom
validators are plain callables with the same signature.

Examples
--------
>>> is_valid_integer(" 42 "), is_valid_integer("taco")
(True, False)
>>> all_valid_email_addresses(";")("a@example.com;b@example.org")
True
"""

from __future__ import annotations

import ipaddress
import re
from pathlib import PureWindowsPath
from typing import Callable
from urllib.parse import urlsplit
from xml.etree import ElementTree

_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1

_BOOLEAN_LITERALS = frozenset({"true", "false"})

_HOSTNAME = re.compile(r"\b((?=[a-z0-9-]{1,63}\.)[a-z0-9]+(-[a-z0-9]+)*\.)+[a-z]{2,63}\b", re.IGNORECASE)

_EMAIL = re.compile(r"^[^@\s,;<>]+@[^@\s,;<>]+\.[^@\s,;<>.]+$")

_TIME_INTERVAL = re.compile(
    r"^-?(?:(?P<days>\d+)\.)?(?P<hours>\d{1,2}):(?P<minutes>\d{1,2})"
    r"(?::(?P<seconds>\d{1,2})(?:\.(?P<fraction>\d{1,7}))?)?$"
)


def exists(value: object) -> bool:
    """Accept anything; used to declare that a key must be present."""

    return True


def is_valid_boolean(value: str | None) -> bool:
    """Return ``True`` for ``true``/``false`` in any case."""

    return value is not None and value.strip().lower() in _BOOLEAN_LITERALS


def is_valid_integer(value: str | None) -> bool:
    """Return ``True`` for a 32-bit signed integer literal."""

    if value is None:
        return False
    try:
        number = int(value.strip(), 10)
    except ValueError:
        return False
    return _INT32_MIN <= number <= _INT32_MAX


def is_valid_url(value: str | None) -> bool:
    """Return ``True`` for an absolute URL; reachability is not checked.

    >>> is_valid_url("http://fake"), is_valid_url("fake")
    (True, False)
    """

    if value is None:
        return False
    try:
        parts = urlsplit(value.strip())
    except ValueError:
        return False
    if not parts.scheme:
        return False
    return bool(parts.netloc) or (parts.scheme == "file" and bool(parts.path))


def is_valid_hostname(value: str | None) -> bool:
    """Return ``True`` when *value* contains a dotted host name with an alphabetic TLD."""

    return value is not None and _HOSTNAME.search(value) is not None


def is_valid_ip_address(value: str | None) -> bool:
    """Return ``True`` for a dotted-quad IPv4 address (surrounding blanks allowed)."""

    if value is None:
        return False
    try:
        ipaddress.IPv4Address(value.strip())
    except ValueError:
        return False
    return True


def is_valid_hostname_or_ip(value: str | None) -> bool:
    return is_valid_hostname(value) or is_valid_ip_address(value)


def is_valid_email_address(value: str | None) -> bool:
    """Return ``True`` for a single address; deliverability is not checked."""

    return value is not None and _EMAIL.match(value.strip()) is not None


def all_valid_email_addresses(delimiter: str) -> Callable[[str | None], bool]:
    """Build a predicate accepting *delimiter*-separated addresses.

    Empty entries (leading, trailing or doubled delimiters) are rejected.
    """

    def predicate(value: str | None) -> bool:
        if value is None:
            return False
        return all(is_valid_email_address(address) for address in value.split(delimiter))

    return predicate


def is_well_formed_xml(value: str | None) -> bool:
    """Return ``True`` when *value* parses as an XML document; no schema check."""

    if value is None:
        return False
    try:
        ElementTree.fromstring(value)
    except ElementTree.ParseError:
        return False
    return True


def is_well_formed_path(value: str | None) -> bool:
    """Return ``True`` for a rooted path (``/x``, ``\\x``, ``C:\\x``); existence is not checked."""

    if value is None or not value.strip():
        return False
    candidate = value.strip()
    if candidate.startswith(("/", "\\")):
        return True
    return bool(PureWindowsPath(candidate).drive)


def is_valid_time_interval(value: str | None) -> bool:
    """Return ``True`` for ``[-][d.]hh:mm[:ss[.fffffff]]`` or a whole number of days.

    >>> is_valid_time_interval("01:01:01"), is_valid_time_interval("25:16")
    (True, False)
    """

    if value is None:
        return False
    candidate = value.strip()
    if re.fullmatch(r"-?\d+", candidate):
        return True
    match = _TIME_INTERVAL.match(candidate)
    if match is None:
        return False
    seconds = match.group("seconds")
    return (
        int(match.group("hours")) < 24
        and int(match.group("minutes")) < 60
        and (seconds is None or int(seconds) < 60)
    )


def is_valid_connection_string(value: str | None) -> bool:
    """Return ``True`` for a non-empty ``key=value;`` connection string."""

    if value is None or not value.strip():
        return False
    pairs = [pair for pair in value.split(";") if pair.strip()]
    if not pairs:
        return False
    for pair in pairs:
        key, separator, _ = pair.partition("=")
        if not separator or not key.strip():
            return False
    return True
