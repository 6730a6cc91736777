"""Server-side account provisioning hook.

Runs when the auth service creates a user: inserts the profile row and
the default timer settings row. Mirrors the hosted trigger so the memory
backend and the ``/hooks/handle-new-user`` webhook share one code path.
"""

from __future__ import annotations

from typing import Any

import structlog

from studytrack.backend.base import (
    USER_SETTINGS_TABLE,
    USERS_TABLE,
    Backend,
    BackendError,
)
from studytrack.core.models import DEFAULT_USER_NAME, TimerSettings

logger = structlog.get_logger(__name__)


def default_settings_row(user_id: str) -> dict[str, Any]:
    """Default ``user_settings`` row for a new account."""
    return TimerSettings().to_row(user_id)


def profile_row(record: dict[str, Any]) -> dict[str, Any]:
    """Profile row built from the auth record."""
    metadata = record.get("raw_user_meta_data") or {}
    return {
        "id": record["id"],
        "email": record.get("email", ""),
        "name": metadata.get("name") or DEFAULT_USER_NAME,
    }


async def provision_user(backend: Backend, record: dict[str, Any]) -> dict[str, str]:
    """Create the profile and default settings for a new auth user.

    Args:
        backend: Backend with service-level access
        record: Auth user record (``id``, ``email``, ``raw_user_meta_data``)

    Returns:
        Confirmation message payload.

    Raises:
        BackendError: If either insert fails.
    """
    if not record.get("id"):
        raise BackendError("Missing user id in record", status_code=400)

    try:
        await backend.insert(USERS_TABLE, profile_row(record))
    except BackendError as e:
        logger.error("profile_creation_failed", user_id=record["id"], error=str(e))
        raise

    try:
        await backend.insert(USER_SETTINGS_TABLE, default_settings_row(record["id"]))
    except BackendError as e:
        logger.error("settings_creation_failed", user_id=record["id"], error=str(e))
        raise

    logger.info("user_provisioned", user_id=record["id"])
    return {"message": "User profile and settings created successfully"}
