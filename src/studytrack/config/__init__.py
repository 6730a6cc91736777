"""Configuration package for the study tracker."""

from studytrack.config.app_config import (
    AppConfig,
    BackendConfig,
    ConfigError,
    ServerConfig,
    TimerConfig,
    clear_config_cache,
    load_app_config,
)

__all__ = [
    "AppConfig",
    "BackendConfig",
    "ConfigError",
    "ServerConfig",
    "TimerConfig",
    "clear_config_cache",
    "load_app_config",
]
