"""
Install command implementation.

Resolves the requested Helm version, acquires it through the tool cache,
puts its directory on PATH and publishes the ``helm-path`` output.
"""

import logging
import os
from pathlib import Path
from typing import MutableMapping, Optional, TextIO

from helm_installer.cli.actions import publish_tool_directory, set_failed, set_output
from helm_installer.config import InstallerConfig, load_config
from helm_installer.core.exceptions import HelmInstallerError
from helm_installer.core.tool_cache import ToolCache
from helm_installer.installer import HelmInstaller
from helm_installer.resolver import VersionResolver

logger = logging.getLogger(__name__)

OUTPUT_NAME = "helm-path"


def install_helm(config: InstallerConfig) -> tuple[str, Path]:
    """
    Resolve and acquire Helm for a configuration.

    Returns:
        Tuple of (resolved version, path to helm executable)

    Raises:
        HelmDownloadError: If the archive download fails
        HelmNotFoundError: If no executable is found after caching
    """
    resolver = VersionResolver(
        token=config.token, defaults=config.defaults, timeout=config.timeout
    )
    version = resolver.resolve(config.version, config.legacy_versioning)

    installer = HelmInstaller(
        cache=ToolCache(config.cache_dir),
        temp_dir=config.temp_dir,
        timeout=config.timeout,
        resolver=resolver,
    )

    logger.debug(f"Downloading {version}")
    return version, installer.acquire(version)


def run(
    args,
    environ: Optional[MutableMapping[str, str]] = None,
    stream: Optional[TextIO] = None,
) -> int:
    """
    Run the install command.

    Args:
        args: Parsed command-line arguments with:
            - helm_version: Version token (falls back to INPUT_VERSION)
            - token: GitHub token (falls back to INPUT_TOKEN)
            - legacy_versioning: Force legacy rules when True
            - cache_dir: Tool cache override
            - config: Optional YAML configuration file
        environ: Environment mapping (default: os.environ)
        stream: Where workflow commands are written (default: stdout)

    Returns:
        Exit code (0 for success, 1 on failure)
    """
    environ = os.environ if environ is None else environ

    try:
        config = load_config(
            config_file=args.config,
            version=args.helm_version,
            token=args.token,
            legacy_versioning=args.legacy_versioning,
            cache_dir=args.cache_dir,
            environ=environ,
        )
        version, helm_path = install_helm(config)

        publish_tool_directory(helm_path, environ, stream=stream)
        print(
            f"Helm tool version: '{version}' has been cached at {helm_path}", file=stream
        )
        set_output(OUTPUT_NAME, str(helm_path), environ, stream=stream)
    except HelmInstallerError as e:
        return set_failed(str(e), stream=stream)
    except Exception as e:
        if getattr(args, "verbose", False):
            logger.exception("Unexpected error")
        return set_failed(str(e), stream=stream)

    return 0
