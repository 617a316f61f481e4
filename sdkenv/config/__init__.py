"""Configuration module for sdkenv."""

from sdkenv.config.parser import (
    CatalogConfig,
    InstallConfig,
    SdkenvConfig,
    load_config,
    DEFAULT_CATALOG_URL,
)

__all__ = [
    "CatalogConfig",
    "InstallConfig",
    "SdkenvConfig",
    "load_config",
    "DEFAULT_CATALOG_URL",
]
