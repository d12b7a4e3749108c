"""
Platform detection for helm-installer.

Helm publishes one archive per operating system. Only Linux and Darwin are
recognized explicitly; every other system falls back to the Windows archive.

Usage:
    from helm_installer.core.platform import detect_platform

    platform_info = detect_platform()
    print(platform_info.download_suffix())  # 'linux-amd64'
"""

import enum
import functools
import platform
from dataclasses import dataclass


class OSFamily(enum.Enum):
    """Operating system families with distinct Helm archives."""

    LINUX = "linux"
    DARWIN = "darwin"
    OTHER = "other"


# OTHER covers Windows and anything unrecognized.
_DOWNLOAD_SUFFIXES = {
    OSFamily.LINUX: "linux-amd64",
    OSFamily.DARWIN: "darwin-amd64",
    OSFamily.OTHER: "windows-amd64",
}


@dataclass(frozen=True)
class PlatformInfo:
    """
    Platform information needed to pick and locate a Helm binary.

    Attributes:
        system: Raw system name as reported by ``platform.system()``
        arch: Normalized CPU architecture ('x64', 'arm64', 'x86', 'arm')
    """

    system: str
    arch: str

    @property
    def family(self) -> OSFamily:
        """OS family used for the download URL."""
        if self.system == "Linux":
            return OSFamily.LINUX
        if self.system == "Darwin":
            return OSFamily.DARWIN
        return OSFamily.OTHER

    def download_suffix(self) -> str:
        """
        Get the archive suffix for this platform.

        Example:
            >>> PlatformInfo('Darwin', 'x64').download_suffix()
            'darwin-amd64'
        """
        return _DOWNLOAD_SUFFIXES[self.family]

    def executable_extension(self) -> str:
        """
        Get the executable file extension.

        Only Windows-like systems use '.exe'; an unrecognized system gets the
        Windows archive but no extension.
        """
        if self.system.startswith("Win"):
            return ".exe"
        return ""

    def executable_name(self, tool: str) -> str:
        """Get the platform-specific file name of a tool binary."""
        return f"{tool}{self.executable_extension()}"

    def __str__(self) -> str:
        return f"{self.system}-{self.arch}"


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.
    """
    return PlatformInfo(system=platform.system(), arch=_detect_architecture())


def _detect_architecture() -> str:
    """
    Detect CPU architecture.

    Returns:
        Normalized architecture: 'x64', 'arm64', 'x86', 'arm'
    """
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    else:
        # Return original for unknown architectures
        return machine


def clear_platform_cache():
    """Clear the cached platform detection result (used by tests)."""
    detect_platform.cache_clear()
