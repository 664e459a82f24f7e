"""Configuration loading."""

from .glimpse_config import (
    ConfigError,
    GlimpseConfig,
    LLMSettings,
    LogsConfig,
    QueueOverflow,
    get_global_config_path,
    load_config,
    save_global_config,
)

__all__ = [
    "ConfigError",
    "GlimpseConfig",
    "LLMSettings",
    "LogsConfig",
    "QueueOverflow",
    "get_global_config_path",
    "load_config",
    "save_global_config",
]
