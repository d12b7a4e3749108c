"""
Directory resolution for helm-installer.

Directory Structure:
    Tool cache ($RUNNER_TOOL_CACHE or ~/.helm-installer/tool-cache):
        - <tool>/<version>/<arch>/           : Extracted release archive
        - <tool>/<version>/<arch>.complete   : Marker written after caching
        - index.json                         : Installed entry index
        - lock/                              : Index lock files

    Temp ($RUNNER_TEMP or system temp dir):
        - helm_installer_*/                  : Per-download scratch directories
"""

import os
import tempfile
from pathlib import Path
from typing import Mapping, Optional

TOOL_CACHE_ENV = "RUNNER_TOOL_CACHE"
TEMP_DIR_ENV = "RUNNER_TEMP"


def get_default_home() -> Path:
    """
    Get the per-user helm-installer directory.

    Returns:
        Path: ~/.helm-installer on every platform
    """
    return Path.home() / ".helm-installer"


def get_tool_cache_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """
    Get the host-level tool cache directory.

    CI runners export RUNNER_TOOL_CACHE; outside a runner the cache lives
    under the user's home directory.

    Example:
        >>> get_tool_cache_dir({"RUNNER_TOOL_CACHE": "/opt/hostedtoolcache"})
        PosixPath('/opt/hostedtoolcache')
    """
    environ = os.environ if environ is None else environ
    configured = environ.get(TOOL_CACHE_ENV)
    if configured:
        return Path(configured)
    return get_default_home() / "tool-cache"


def get_temp_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Get the directory used for downloads before they are cached."""
    environ = os.environ if environ is None else environ
    configured = environ.get(TEMP_DIR_ENV)
    if configured:
        return Path(configured)
    return Path(tempfile.gettempdir())
