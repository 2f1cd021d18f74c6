"""Filesystem location of the durable configuration cache.

Purpose
-------
Pick the per-application directory that holds cached configuration records,
following each platform's convention for user cache data. The adapter is the
only component that understands filesystem conventions.

Contents
--------
* :data:`VENDOR_DIRECTORY` – vendor directory name shared by all applications.
* :class:`DefaultCacheDirectoryResolver` – resolves the cache directory.

System Role
-----------
Used by :class:`habitat_client.core.DefaultConfigProviderFactory` when the
embedding application does not pass an explicit cache directory.
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path
from typing import Mapping

from ...observability import log_debug

VENDOR_DIRECTORY = "habitat"


class DefaultCacheDirectoryResolver:
    """Resolve the cache directory for one consuming application.

    Why
    ----
    Cached configuration must survive restarts, so it belongs in the user's
    cache area rather than a volatile temporary directory, and it must be
    separated per application identity.

    Parameters
    ----------
    application_name:
        Identity of the consuming application; becomes the leaf directory.
    env:
        Optional environment mapping that overrides ``os.environ`` values
        (useful for deterministic tests).
    platform:
        Platform identifier (``sys.platform`` clone). Defaults to the current
        interpreter platform.
    home:
        Home directory override; defaults to :meth:`pathlib.Path.home`.
    """

    def __init__(
        self,
        application_name: str,
        *,
        env: Mapping[str, str] | None = None,
        platform: str | None = None,
        home: Path | None = None,
    ) -> None:
        self.application_name = application_name
        self.env = {**os.environ, **(env or {})}
        self.platform = platform or sys.platform
        self.home = home or Path.home()

    def resolve(self) -> Path:
        """Return the cache directory; the directory is not created here.

        Examples
        --------
        >>> resolver = DefaultCacheDirectoryResolver("Demo", env={"XDG_CACHE_HOME": "/var/cache/me"}, platform="linux")
        >>> resolver.resolve().as_posix()
        '/var/cache/me/habitat/Demo'
        """

        if self._is_linux:
            path = self._linux()
        elif self._is_macos:
            path = self.home / "Library" / "Caches" / "Habitat" / self.application_name
        elif self._is_windows:
            path = self._windows()
        else:
            path = Path(tempfile.gettempdir()) / VENDOR_DIRECTORY / self.application_name
        log_debug("cache_directory_resolved", component=None, source="cache", path=str(path))
        return path

    @property
    def _is_linux(self) -> bool:
        return self.platform.startswith("linux")

    @property
    def _is_macos(self) -> bool:
        return self.platform == "darwin"

    @property
    def _is_windows(self) -> bool:
        return self.platform.startswith("win")

    def _linux(self) -> Path:
        """Follow the XDG base directory specification."""

        xdg = self.env.get("XDG_CACHE_HOME")
        base = Path(xdg) if xdg else self.home / ".cache"
        return base / VENDOR_DIRECTORY / self.application_name

    def _windows(self) -> Path:
        """Use ``%LOCALAPPDATA%`` so the cache does not roam between machines."""

        local = Path(self.env.get("LOCALAPPDATA", self.home / "AppData" / "Local"))
        return local / "Habitat" / self.application_name / "Cache"
