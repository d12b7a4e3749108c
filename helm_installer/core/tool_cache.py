"""
Host-level tool cache keyed by (tool name, version, architecture).

A cached tool lives in ``<root>/<tool>/<version>/<arch>`` where ``version``
has its leading 'v' removed. A sibling ``<arch>.complete`` marker is written
only after the copy finishes, so a half-written entry is never reported as a
hit. Entries are never removed by this module.

The cache also keeps ``index.json`` describing installed entries. Writes to
the index are serialized with a file lock; the lock does not coordinate
concurrent downloads of the same version.
"""

import json
import logging
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from helm_installer.core.directory import get_tool_cache_dir
from helm_installer.core.exceptions import ToolCacheError
from helm_installer.core.filesystem import atomic_write, copy_tree
from helm_installer.core.platform import detect_platform

logger = logging.getLogger(__name__)


def clean_version(version: str) -> str:
    """
    Strip surrounding whitespace and a leading 'v' or '=' from a version.

    Example:
        >>> clean_version(" v3.5.3 ")
        '3.5.3'
    """
    return version.strip().lstrip("=v").strip()


class ToolCache:
    """
    Directory store for extracted tool archives.

    Example:
        >>> cache = ToolCache(Path('/opt/hostedtoolcache'))
        >>> cache.find('helm', 'v3.5.3')
        >>> cache.cache_dir(Path('/tmp/extracted'), 'helm', 'v3.5.3')
        PosixPath('/opt/hostedtoolcache/helm/3.5.3/x64')
    """

    def __init__(
        self,
        root: Optional[Path] = None,
        arch: Optional[str] = None,
        lock_timeout: int = 30,
    ):
        """
        Initialize tool cache.

        Args:
            root: Cache root directory (default: RUNNER_TOOL_CACHE or ~/.helm-installer)
            arch: Architecture component of cache keys (default: detected)
            lock_timeout: Timeout in seconds for acquiring the index lock
        """
        self.root = Path(root) if root is not None else get_tool_cache_dir()
        self.arch = arch or detect_platform().arch
        self.index_path = self.root / "index.json"
        self.lock_path = self.root / "lock" / "index.lock"
        self.lock_timeout = lock_timeout

    def entry_path(self, tool: str, version: str, arch: Optional[str] = None) -> Path:
        """Get the directory a (tool, version, arch) entry occupies."""
        return self.root / tool / clean_version(version) / (arch or self.arch)

    def _marker_path(self, entry: Path) -> Path:
        return entry.parent / f"{entry.name}.complete"

    def find(self, tool: str, version: str, arch: Optional[str] = None) -> Optional[Path]:
        """
        Look up a cached tool.

        Args:
            tool: Tool name
            version: Concrete version (with or without leading 'v')
            arch: Architecture (default: cache architecture)

        Returns:
            Path to the cached directory, or None on a miss
        """
        if not tool:
            raise ValueError("Tool name cannot be empty")
        if not version:
            raise ValueError("Version cannot be empty")

        entry = self.entry_path(tool, version, arch)
        if entry.is_dir() and self._marker_path(entry).exists():
            logger.debug(f"Found tool in cache {tool} {version} {entry.name}")
            return entry

        logger.debug(f"Tool not found in cache: {tool} {version}")
        return None

    def cache_dir(
        self,
        source: Path,
        tool: str,
        version: str,
        arch: Optional[str] = None,
        source_url: str = "",
    ) -> Path:
        """
        Copy an extracted directory into the cache.

        Args:
            source: Directory to copy
            tool: Tool name
            version: Concrete version
            arch: Architecture (default: cache architecture)
            source_url: Where the archive came from (recorded in the index)

        Returns:
            Path to the cached directory

        Raises:
            ToolCacheError: If the source is not a directory or copying fails
        """
        source = Path(source)
        if not source.is_dir():
            raise ToolCacheError(f"Source directory not found: {source}")

        entry = self.entry_path(tool, version, arch)
        marker = self._marker_path(entry)
        logger.debug(f"Caching tool {tool} {version} into {entry}")

        try:
            marker.unlink(missing_ok=True)
            copy_tree(source, entry)
            marker.write_text("", encoding="utf-8")
        except OSError as e:
            raise ToolCacheError(f"Failed to cache {tool} {version}: {e}") from e

        self._record(tool, version, entry, source_url)
        return entry

    # ------------------------------------------------------------------
    # Index
    # ------------------------------------------------------------------

    def _entry_key(self, tool: str, version: str, arch: Optional[str] = None) -> str:
        return f"{tool}-{clean_version(version)}-{arch or self.arch}"

    def _load_index(self) -> dict:
        if not self.index_path.exists():
            return {"version": 1, "entries": {}}

        try:
            with open(self.index_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable cache index {self.index_path}: {e}")
            return {"version": 1, "entries": {}}

        if "entries" not in data:
            logger.warning("Invalid cache index format, resetting")
            return {"version": 1, "entries": {}}

        return data

    @contextmanager
    def _lock(self):
        """
        Hold the exclusive index lock.

        Raises:
            ToolCacheError: If lock cannot be acquired within timeout
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self.lock_path, timeout=self.lock_timeout)

        try:
            with lock:
                yield
        except Timeout as e:
            raise ToolCacheError(
                f"Could not acquire cache index lock within {self.lock_timeout} seconds"
            ) from e

    def _record(self, tool: str, version: str, entry: Path, source_url: str):
        with self._lock():
            data = self._load_index()
            data["entries"][self._entry_key(tool, version, entry.name)] = {
                "tool": tool,
                "version": clean_version(version),
                "arch": entry.name,
                "path": str(entry.resolve()),
                "source_url": source_url,
                "installed": datetime.now().isoformat(),
            }

            try:
                atomic_write(self.index_path, json.dumps(data, indent=2))
            except OSError as e:
                raise ToolCacheError(f"Failed to save cache index: {e}") from e

        logger.debug(f"Recorded {tool} {version} in cache index")
