"""Backend construction from configuration."""

from __future__ import annotations

import structlog

from studytrack.backend.base import Backend
from studytrack.backend.memory import MemoryBackend
from studytrack.backend.supabase import SupabaseBackend
from studytrack.config.app_config import BackendConfig, ConfigError

logger = structlog.get_logger(__name__)


def create_backend(config: BackendConfig) -> Backend:
    """Create the user-facing backend for the configured provider.

    Raises:
        ConfigError: If the configuration is invalid.
    """
    config.validate()

    if config.provider == "supabase":
        return SupabaseBackend(
            url=config.url,
            api_key=config.get_anon_key(),
            timeout=config.timeout,
        )

    logger.info("using_memory_backend")
    return MemoryBackend(require_email_confirmation=config.require_email_confirmation)


def create_service_backend(config: BackendConfig) -> Backend:
    """Create a backend with service-level access for server-side hooks.

    Raises:
        ConfigError: If the service-role key is not available.
    """
    config.validate()

    if config.provider != "supabase":
        raise ConfigError("Service backend is only available for the supabase provider")

    key = config.get_service_role_key()
    if not key:
        raise ConfigError(f"Missing service-role key (set {config.service_role_key_env})")

    return SupabaseBackend(url=config.url, api_key=key, timeout=config.timeout)
