"""File-backed durable cache of last-known-good configuration.

Purpose
-------
Implement :class:`habitat_client.application.ports.ConfigCache` with one JSON
record per component inside a per-application directory, so validated
configuration survives process restarts and config service outages.

Contents
--------
* :class:`DurableConfigCache` – the repository.
* :func:`record_filename` – maps a component name to its record file name.

System Role
-----------
Consistency contract:

* ``save`` writes a temporary file in the target directory, flushes and
  ``fsync``s it, then ``os.replace``s it over the record. Readers therefore see
  either the previous complete record or the new one, never a partial write.
* Writers for the same component are serialised by a per-component lock;
  different components never contend.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from urllib.parse import quote, unquote

from ...domain.config import ConfigRoot
from ...domain.errors import InvalidFormat
from ...observability import log_debug, log_info, make_event

_SUFFIX = ".json"


def record_filename(component_name: str) -> str:
    """Return a filesystem-safe file name for *component_name*.

    Examples
    --------
    >>> record_filename("Environment")
    'Environment.json'
    >>> record_filename("billing/api v2")
    'billing%2Fapi%20v2.json'
    """

    return quote(component_name, safe="") + _SUFFIX


class DurableConfigCache:
    """Store one :class:`ConfigRoot` per component under *directory*.

    Parameters
    ----------
    directory:
        Directory owned by one consuming application. Created lazily on the
        first save.

    Examples
    --------
    >>> from tempfile import TemporaryDirectory
    >>> from habitat_client.domain.config import ConfigNode
    >>> tmp = TemporaryDirectory()
    >>> cache = DurableConfigCache(tmp.name)
    >>> cache.load("foo") is None
    True
    >>> cache.save("foo", ConfigRoot("foo", data=ConfigNode("foo", children=(ConfigNode("N1", "V1"),))))
    >>> cache.load("foo").to_dictionary()
    {'foo.N1': 'V1'}
    >>> tmp.cleanup()
    """

    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self._directory = Path(directory)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, component_name: str) -> Path:
        return self._directory / record_filename(component_name)

    def load(self, component_name: str) -> ConfigRoot | None:
        """Return the stored tree for *component_name* or ``None`` when absent.

        Raises
        ------
        InvalidFormat
            When a record exists but cannot be decoded.
        """

        path = self.path_for(component_name)
        try:
            payload = path.read_bytes()
        except FileNotFoundError:
            log_debug("config_cache_miss", **make_event(component_name, "cache", {"path": str(path)}))
            return None
        try:
            config = ConfigRoot.from_dict(json.loads(payload))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise InvalidFormat(f"Invalid cache record {path}: {exc}") from exc
        log_debug("config_cache_loaded", **make_event(component_name, "cache", {"path": str(path)}))
        return config

    def save(self, component_name: str, config: ConfigRoot) -> None:
        """Atomically replace the record stored for *component_name*."""

        path = self.path_for(component_name)
        body = json.dumps(config.to_dict(), indent=2, ensure_ascii=False).encode("utf-8")
        with self._lock_for(component_name):
            self._directory.mkdir(parents=True, exist_ok=True)
            _atomic_write(path, body)
        log_info("config_cache_saved", **make_event(component_name, "cache", {"path": str(path), "size": len(body)}))

    def delete(self, component_name: str) -> bool:
        """Remove the record for *component_name*; return ``True`` if one existed."""

        with self._lock_for(component_name):
            try:
                self.path_for(component_name).unlink()
            except FileNotFoundError:
                return False
        return True

    def component_names(self) -> list[str]:
        """Return the names of all components with a stored record, sorted."""

        if not self._directory.is_dir():
            return []
        return sorted(unquote(path.name[: -len(_SUFFIX)]) for path in self._directory.glob(f"*{_SUFFIX}"))

    def _lock_for(self, component_name: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(component_name)
            if lock is None:
                lock = self._locks[component_name] = threading.Lock()
            return lock


def _atomic_write(path: Path, body: bytes) -> None:
    """Write *body* to *path* through a sibling temporary file and ``os.replace``."""

    fd, temp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(body)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(temp_name, path)
    except BaseException:
        Path(temp_name).unlink(missing_ok=True)
        raise
