"""
Core functionality for helm-installer.

This package contains the foundational modules that other components depend on.
"""

from .directory import (
    get_tool_cache_dir,
    get_temp_dir,
)

from .platform import (
    OSFamily,
    PlatformInfo,
    detect_platform,
    clear_platform_cache,
)

from .tool_cache import (
    ToolCache,
    clean_version,
)

from .exceptions import (
    HelmInstallerError,
    ConfigurationError,
    ReleaseListingError,
    HelmDownloadError,
    HelmNotFoundError,
    ToolCacheError,
)

__all__ = [
    "get_tool_cache_dir",
    "get_temp_dir",
    "OSFamily",
    "PlatformInfo",
    "detect_platform",
    "clear_platform_cache",
    "ToolCache",
    "clean_version",
    "HelmInstallerError",
    "ConfigurationError",
    "ReleaseListingError",
    "HelmDownloadError",
    "HelmNotFoundError",
    "ToolCacheError",
]
