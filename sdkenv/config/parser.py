"""YAML configuration parser for sdkenv.

This module loads ``<root>/config.yaml``. Every key is optional; a missing
file yields the defaults.

Example config.yaml:

    version_file: .flutter-version
    version_env: SDKENV_VERSION
    shim_tools: [flutter, dart]
    catalog:
      url: https://storage.googleapis.com/flutter_infra_release/releases
      ttl_hours: 24
      timeout: 30
    install:
      lock_timeout: 300
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

import yaml

from sdkenv.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_URL = "https://storage.googleapis.com/flutter_infra_release/releases"


@dataclass
class CatalogConfig:
    """Remote release catalog configuration."""

    url: str = DEFAULT_CATALOG_URL
    ttl_hours: float = 24.0
    timeout: int = 30


@dataclass
class InstallConfig:
    """Installer configuration."""

    lock_timeout: int = 300


@dataclass
class SdkenvConfig:
    """Complete sdkenv configuration."""

    version_file: str = ".flutter-version"
    version_env: str = "SDKENV_VERSION"
    shim_tools: List[str] = field(default_factory=lambda: ["flutter", "dart"])
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    install: InstallConfig = field(default_factory=InstallConfig)


def load_config(config_path: Path) -> SdkenvConfig:
    """
    Load sdkenv configuration.

    Args:
        config_path: Path to config.yaml

    Returns:
        Parsed configuration (defaults if the file does not exist)

    Raises:
        ConfigError: If the file is not valid YAML or holds invalid values
    """
    if not config_path.exists():
        logger.debug(f"Config file not found (optional): {config_path}")
        return SdkenvConfig()

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}")

    if data is None:
        return SdkenvConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"{config_path}: top level must be a mapping")

    return _parse_and_validate(data)


def _parse_and_validate(data: dict) -> SdkenvConfig:
    """Parse and validate configuration data."""
    defaults = SdkenvConfig()

    version_file = _get_str(data, "version_file", defaults.version_file)
    if "/" in version_file or "\\" in version_file:
        raise ConfigError(f"version_file must be a file name, not a path: {version_file}")

    shim_tools = data.get("shim_tools", defaults.shim_tools)
    if not isinstance(shim_tools, list) or not all(
        isinstance(t, str) and t for t in shim_tools
    ):
        raise ConfigError("shim_tools must be a list of tool names")

    return SdkenvConfig(
        version_file=version_file,
        version_env=_get_str(data, "version_env", defaults.version_env),
        shim_tools=shim_tools,
        catalog=_parse_catalog_config(data.get("catalog") or {}),
        install=_parse_install_config(data.get("install") or {}),
    )


def _parse_catalog_config(data: dict) -> CatalogConfig:
    """Parse catalog configuration."""
    if not isinstance(data, dict):
        raise ConfigError("catalog must be a mapping")

    defaults = CatalogConfig()
    ttl_hours = data.get("ttl_hours", defaults.ttl_hours)
    if isinstance(ttl_hours, bool) or not isinstance(ttl_hours, (int, float)) or ttl_hours < 0:
        raise ConfigError(f"catalog.ttl_hours must be a non-negative number: {ttl_hours}")

    timeout = data.get("timeout", defaults.timeout)
    if isinstance(timeout, bool) or not isinstance(timeout, int) or timeout <= 0:
        raise ConfigError(f"catalog.timeout must be a positive integer: {timeout}")

    return CatalogConfig(
        url=_get_str(data, "url", defaults.url).rstrip("/"),
        ttl_hours=float(ttl_hours),
        timeout=timeout,
    )


def _parse_install_config(data: dict) -> InstallConfig:
    """Parse installer configuration."""
    if not isinstance(data, dict):
        raise ConfigError("install must be a mapping")

    lock_timeout = data.get("lock_timeout", InstallConfig().lock_timeout)
    if isinstance(lock_timeout, bool) or not isinstance(lock_timeout, int) or lock_timeout < 0:
        raise ConfigError(f"install.lock_timeout must be a non-negative integer: {lock_timeout}")

    return InstallConfig(lock_timeout=lock_timeout)


def _get_str(data: dict, key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ConfigError(f"{key} must be a non-empty string")
    return value.strip()
