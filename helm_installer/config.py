"""
Configuration loading for helm-installer.

Values come from three layers, later layers winning:
1. Optional YAML file (``--config``)
2. Environment (``INPUT_VERSION``, ``INPUT_TOKEN``,
   ``HELM_INSTALLER_LEGACY_VERSIONING``, ``RUNNER_TOOL_CACHE``, ``RUNNER_TEMP``)
3. Command-line arguments

Example file:

    version: "3.*"
    token: ghp_...
    legacy_versioning: false
    cache_dir: /opt/hostedtoolcache
    timeout: 60
    defaults:
      stable: v3.2.1
      stable_v2: v2.17.0
      stable_v3: v3.5.3
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from helm_installer.core.directory import get_temp_dir, get_tool_cache_dir
from helm_installer.core.download import DEFAULT_TIMEOUT
from helm_installer.core.exceptions import ConfigurationError
from helm_installer.resolver import ResolverDefaults

logger = logging.getLogger(__name__)

LEGACY_VERSIONING_ENV = "HELM_INSTALLER_LEGACY_VERSIONING"


@dataclass
class InstallerConfig:
    """Fully merged settings for one run."""

    version: str
    token: str
    legacy_versioning: bool = False
    cache_dir: Path = field(default_factory=get_tool_cache_dir)
    temp_dir: Path = field(default_factory=get_temp_dir)
    timeout: int = DEFAULT_TIMEOUT
    defaults: ResolverDefaults = field(default_factory=ResolverDefaults)


def load_yaml_config(config_file: Path, required: bool = False) -> Dict[str, Any]:
    """
    Load and parse a YAML configuration file.

    Args:
        config_file: Path to YAML configuration file
        required: If True, raise error if file doesn't exist

    Returns:
        Configuration dictionary (empty dict if file doesn't exist and not required)

    Raises:
        ConfigurationError: If the file is required and missing, or invalid
    """
    if not config_file.exists():
        if required:
            raise ConfigurationError(f"Configuration file not found: {config_file}")
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e

    config = config or {}
    if not isinstance(config, dict):
        raise ConfigurationError(f"Configuration in {config_file} must be a mapping")
    return config


def get_input(
    name: str, environ: Mapping[str, str], required: bool = False
) -> str:
    """
    Read a workflow input from the environment (``INPUT_<NAME>``).

    Raises:
        ConfigurationError: If required and not supplied
    """
    value = environ.get(f"INPUT_{name.replace(' ', '_').upper()}", "").strip()
    if required and not value:
        raise ConfigurationError(f"Input required and not supplied: {name}")
    return value


def _parse_defaults(raw: Any) -> ResolverDefaults:
    if not raw:
        return ResolverDefaults()
    if not isinstance(raw, dict):
        raise ConfigurationError("'defaults' must be a mapping")

    unknown = set(raw) - {"stable", "stable_v2", "stable_v3"}
    if unknown:
        raise ConfigurationError(
            f"Unknown keys in 'defaults': {', '.join(sorted(unknown))}"
        )
    return ResolverDefaults(**{key: str(value) for key, value in raw.items()})


def load_config(
    config_file: Optional[Path] = None,
    version: Optional[str] = None,
    token: Optional[str] = None,
    legacy_versioning: Optional[bool] = None,
    cache_dir: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> InstallerConfig:
    """
    Merge file, environment and argument settings.

    Raises:
        ConfigurationError: If version or token is missing, or the file is invalid
    """
    environ = os.environ if environ is None else environ
    file_config = load_yaml_config(config_file, required=True) if config_file else {}

    version = version or get_input("version", environ) or str(file_config.get("version") or "")
    if not version:
        raise ConfigurationError("Input required and not supplied: version")

    token = token or get_input("token", environ) or str(file_config.get("token") or "")
    if not token:
        raise ConfigurationError("Input required and not supplied: token")

    if legacy_versioning is None:
        if LEGACY_VERSIONING_ENV in environ:
            legacy_versioning = environ[LEGACY_VERSIONING_ENV] == "true"
        else:
            legacy_versioning = bool(file_config.get("legacy_versioning", False))

    if cache_dir is None:
        if "cache_dir" in file_config and "RUNNER_TOOL_CACHE" not in environ:
            cache_dir = Path(file_config["cache_dir"]).expanduser()
        else:
            cache_dir = get_tool_cache_dir(environ)

    try:
        timeout = int(file_config.get("timeout", DEFAULT_TIMEOUT))
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid timeout: {file_config.get('timeout')}") from e

    return InstallerConfig(
        version=version,
        token=token,
        legacy_versioning=legacy_versioning,
        cache_dir=Path(cache_dir),
        temp_dir=get_temp_dir(environ),
        timeout=timeout,
        defaults=_parse_defaults(file_config.get("defaults")),
    )
