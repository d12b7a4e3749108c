"""
Centralized exception hierarchy for helm-installer.

Discovery errors (release listings) are recovered by the version resolver;
acquisition errors (download, executable lookup) propagate to the CLI and
fail the step.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class HelmInstallerError(Exception):
    """Base exception for all helm-installer errors."""

    pass


class ConfigurationError(HelmInstallerError):
    """Raised when required inputs are missing or the config file is invalid."""

    pass


# ============================================================================
# Release Discovery Exceptions
# ============================================================================


class ReleaseListingError(HelmInstallerError):
    """Raised when a release listing cannot be fetched or parsed."""

    pass


# ============================================================================
# Acquisition Exceptions
# ============================================================================


class HelmDownloadError(HelmInstallerError):
    """Raised when the Helm release archive cannot be downloaded."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Failed to download Helm from location {url}")


class HelmNotFoundError(HelmInstallerError):
    """Raised when no Helm executable exists under a directory."""

    def __init__(self, search_path):
        self.search_path = search_path
        super().__init__(f"Helm executable not found in path {search_path}")


class ToolCacheError(HelmInstallerError):
    """Raised when the tool cache cannot be read or written."""

    pass
