"""Application configuration loader.

Loads centralized configuration from data/config/app_config_v1.yaml,
falling back to built-in defaults. Secrets are never stored in the file:
the backend keys are read from the environment variables it names.

Usage:
    from studytrack.config.app_config import load_app_config

    config = load_app_config()
    key = config.backend.get_anon_key()
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog
import yaml

logger = structlog.get_logger(__name__)

# Config file path (relative to project root)
CONFIG_FILE = Path("data/config/app_config_v1.yaml")

# Environment override for the backend URL
URL_ENV = "SUPABASE_URL"

BACKEND_PROVIDERS = ("supabase", "memory")


class ConfigError(Exception):
    """Invalid or incomplete configuration."""

    pass


@dataclass
class BackendConfig:
    """Configuration for the hosted backend."""

    provider: str = "memory"
    url: str | None = None
    anon_key_env: str = "SUPABASE_ANON_KEY"
    service_role_key_env: str = "SUPABASE_SERVICE_ROLE_KEY"
    timeout: float = 10.0
    # Memory backend only: sign-up returns no session until confirmed
    require_email_confirmation: bool = False

    def get_anon_key(self) -> str | None:
        """Get the public (anon) API key from the environment."""
        return os.environ.get(self.anon_key_env)

    def get_service_role_key(self) -> str | None:
        """Get the service-role key from the environment."""
        return os.environ.get(self.service_role_key_env)

    def validate(self) -> None:
        """Check that the selected provider can be constructed.

        Raises:
            ConfigError: If the provider is unknown or credentials are missing.
        """
        if self.provider not in BACKEND_PROVIDERS:
            raise ConfigError(
                f"Unknown backend provider '{self.provider}'. "
                f"Expected one of: {', '.join(BACKEND_PROVIDERS)}"
            )
        if self.provider == "supabase":
            if not self.url:
                raise ConfigError(f"Missing backend URL (set {URL_ENV} or backend.url)")
            if not self.get_anon_key():
                raise ConfigError(f"Missing backend API key (set {self.anon_key_env})")


@dataclass
class ServerConfig:
    """HTTP server settings."""

    host: str = "127.0.0.1"
    port: int = 8000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    log_level: str = "info"
    json_logs: bool = False


@dataclass
class TimerConfig:
    """Timer loop settings (seconds)."""

    tick_interval: float = 1.0
    auto_start_delay: int = 2


@dataclass
class AppConfig:
    """Application-wide configuration."""

    backend: BackendConfig = field(default_factory=BackendConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    timer: TimerConfig = field(default_factory=TimerConfig)

    def to_dict(self) -> dict[str, Any]:
        """Serializable view (key values are never included)."""
        return {
            "backend": {
                "provider": self.backend.provider,
                "url": self.backend.url,
                "anon_key_env": self.backend.anon_key_env,
                "anon_key_set": bool(self.backend.get_anon_key()),
                "service_role_key_env": self.backend.service_role_key_env,
                "timeout": self.backend.timeout,
                "require_email_confirmation": self.backend.require_email_confirmation,
            },
            "server": {
                "host": self.server.host,
                "port": self.server.port,
                "cors_origins": self.server.cors_origins,
                "log_level": self.server.log_level,
                "json_logs": self.server.json_logs,
            },
            "timer": {
                "tick_interval": self.timer.tick_interval,
                "auto_start_delay": self.timer.auto_start_delay,
            },
        }


# Module-level cache
_cached_config: AppConfig | None = None


def _get_defaults() -> dict[str, Any]:
    """Get default configuration values."""
    return {
        "backend": {
            "provider": "memory",
            "url": None,
            "anon_key_env": "SUPABASE_ANON_KEY",
            "service_role_key_env": "SUPABASE_SERVICE_ROLE_KEY",
            "timeout": 10.0,
            "require_email_confirmation": False,
        },
        "server": {
            "host": "127.0.0.1",
            "port": 8000,
            "cors_origins": ["*"],
            "log_level": "info",
            "json_logs": False,
        },
        "timer": {
            "tick_interval": 1.0,
            "auto_start_delay": 2,
        },
    }


def _parse_config(data: dict[str, Any]) -> AppConfig:
    """Parse configuration dictionary into AppConfig object."""
    defaults = _get_defaults()

    backend_data = {**defaults["backend"], **(data.get("backend") or {})}
    url = os.environ.get(URL_ENV) or backend_data.get("url")
    backend = BackendConfig(
        provider=backend_data["provider"],
        url=url.rstrip("/") if url else None,
        anon_key_env=backend_data["anon_key_env"],
        service_role_key_env=backend_data["service_role_key_env"],
        timeout=float(backend_data["timeout"]),
        require_email_confirmation=bool(backend_data["require_email_confirmation"]),
    )

    server_data = {**defaults["server"], **(data.get("server") or {})}
    server = ServerConfig(
        host=server_data["host"],
        port=int(server_data["port"]),
        cors_origins=list(server_data["cors_origins"]),
        log_level=server_data["log_level"],
        json_logs=bool(server_data["json_logs"]),
    )

    timer_data = {**defaults["timer"], **(data.get("timer") or {})}
    timer = TimerConfig(
        tick_interval=float(timer_data["tick_interval"]),
        auto_start_delay=int(timer_data["auto_start_delay"]),
    )

    return AppConfig(backend=backend, server=server, timer=timer)


def load_app_config(force_reload: bool = False) -> AppConfig:
    """Load application config.

    Args:
        force_reload: If True, ignore cached config and reload from file.

    Returns:
        AppConfig object with all settings.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    data: dict[str, Any]

    if CONFIG_FILE.exists():
        logger.debug("loading_app_config", source=str(CONFIG_FILE))
        data = yaml.safe_load(CONFIG_FILE.read_text(encoding="utf-8")) or {}
    else:
        logger.info("using_default_config")
        data = _get_defaults()

    _cached_config = _parse_config(data)
    return _cached_config


def clear_config_cache() -> None:
    """Clear the configuration cache.

    Useful for testing or when config is modified at runtime.
    """
    global _cached_config
    _cached_config = None
