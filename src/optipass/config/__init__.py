"""Configuration loading, schema, and defaults."""

from optipass.config.loader import CONFIG_FILENAME, ConfigError, load_config
from optipass.config.schema import OptipassConfig

__all__ = [
    "CONFIG_FILENAME",
    "ConfigError",
    "OptipassConfig",
    "load_config",
]
