"""Configuration management with Pydantic validation."""

from apigw_sync.core.config.models import (
    DEFAULT_CONFIG_FILE,
    DEFAULT_STATE_DIR,
    ConfigError,
    DeployConfig,
    ProjectConfig,
    ReconcilerSettings,
    load_config,
    load_raw_config,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "DEFAULT_STATE_DIR",
    "ConfigError",
    "DeployConfig",
    "ProjectConfig",
    "ReconcilerSettings",
    "load_config",
    "load_raw_config",
]
