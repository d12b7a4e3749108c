"""
Download, cache and locate the Helm executable.

Archives come from get.helm.sh and are cached per (tool, version, arch).
Download and lookup failures are fatal and propagate to the caller.
"""

import logging
from pathlib import Path
from typing import Optional

from helm_installer.core.directory import get_temp_dir
from helm_installer.core.download import (
    DEFAULT_TIMEOUT,
    DownloadError,
    DownloadProgress,
    download_file,
)
from helm_installer.core.exceptions import HelmDownloadError, HelmNotFoundError
from helm_installer.core.filesystem import (
    extract_archive,
    find_files,
    make_executable,
    temporary_directory,
)
from helm_installer.core.platform import PlatformInfo, detect_platform
from helm_installer.core.tool_cache import ToolCache
from helm_installer.resolver import VersionResolver

logger = logging.getLogger(__name__)

HELM_TOOL_NAME = "helm"
HELM_DOWNLOAD_URL = "https://get.helm.sh/helm-{version}-{suffix}.zip"


def get_helm_download_url(version: str, platform: Optional[PlatformInfo] = None) -> str:
    """
    Build the archive URL for a version on a platform.

    Example:
        >>> get_helm_download_url("v3.5.3", PlatformInfo("Linux", "x64"))
        'https://get.helm.sh/helm-v3.5.3-linux-amd64.zip'
    """
    platform = platform or detect_platform()
    return HELM_DOWNLOAD_URL.format(version=version, suffix=platform.download_suffix())


def _log_progress(progress: DownloadProgress):
    logger.debug(f"Downloaded {progress}")


def find_helm(root: Path, platform: Optional[PlatformInfo] = None) -> Path:
    """
    Locate the Helm executable under a directory.

    The root directory is opened up to full permissions first. When several
    files match, the first one in traversal order wins.

    Raises:
        HelmNotFoundError: If no file named helm (or helm.exe) exists
    """
    platform = platform or detect_platform()
    make_executable(root)

    matches = find_files(root, platform.executable_name(HELM_TOOL_NAME))
    if not matches:
        raise HelmNotFoundError(root)
    return matches[0]


class HelmInstaller:
    """
    Acquire a Helm executable through the tool cache.

    Example:
        >>> installer = HelmInstaller()
        >>> installer.acquire("v3.5.3")
        PosixPath('/opt/hostedtoolcache/helm/3.5.3/x64/linux-amd64/helm')
    """

    def __init__(
        self,
        cache: Optional[ToolCache] = None,
        platform: Optional[PlatformInfo] = None,
        temp_dir: Optional[Path] = None,
        timeout: int = DEFAULT_TIMEOUT,
        resolver: Optional[VersionResolver] = None,
    ):
        """
        Initialize installer.

        Args:
            cache: Tool cache (default: ToolCache at the default location)
            platform: Platform information (auto-detected if None)
            temp_dir: Parent directory for downloads (default: RUNNER_TEMP)
            timeout: Download timeout in seconds
            resolver: Resolver used when acquire() gets an empty version
        """
        self.platform = platform or detect_platform()
        self.cache = cache or ToolCache(arch=self.platform.arch)
        self.temp_dir = temp_dir or get_temp_dir()
        self.timeout = timeout
        self.resolver = resolver or VersionResolver(timeout=timeout)

    def acquire(self, version: str) -> Path:
        """
        Return the Helm executable for a version, downloading it on a cache miss.

        Args:
            version: Concrete version; empty means the latest stable release

        Returns:
            Path to the helm executable

        Raises:
            HelmDownloadError: If the archive download fails
            HelmNotFoundError: If the cached directory has no helm executable
        """
        if not version:
            version = self.resolver.get_global_latest()

        cached_path = self.cache.find(HELM_TOOL_NAME, version)
        if cached_path is None:
            cached_path = self._download_and_cache(version)

        helm_path = find_helm(cached_path, self.platform)
        make_executable(helm_path)
        return helm_path

    def _download_and_cache(self, version: str) -> Path:
        url = get_helm_download_url(version, self.platform)

        with temporary_directory(base_dir=self.temp_dir) as workdir:
            archive_path = workdir / url.split("/")[-1]
            try:
                download_file(
                    url,
                    archive_path,
                    progress_callback=_log_progress,
                    timeout=self.timeout,
                )
            except DownloadError as e:
                logger.debug(f"Download error: {e}")
                raise HelmDownloadError(url) from e

            make_executable(archive_path)
            extracted = extract_archive(archive_path, workdir / "extracted")
            return self.cache.cache_dir(
                extracted, HELM_TOOL_NAME, version, source_url=url
            )
