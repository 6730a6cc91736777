"""Shared dependencies for route handlers.

Holds the process-wide backend instance and resolves the bearer token of
each request into a signed-in session.
"""

from __future__ import annotations

import structlog
from fastapi import Depends, Header, HTTPException, status

from studytrack.backend.base import Backend
from studytrack.backend.factory import create_backend
from studytrack.config.app_config import load_app_config
from studytrack.services.auth import AuthService, AuthSession
from studytrack.services.study import StudyService

logger = structlog.get_logger(__name__)

# Global backend instance
_backend: Backend | None = None


def get_backend() -> Backend:
    """Get the global backend instance, creating it from config."""
    global _backend
    if _backend is None:
        _backend = create_backend(load_app_config().backend)
    return _backend


def set_backend(backend: Backend | None) -> None:
    """Replace the global backend (for testing)."""
    global _backend
    _backend = backend


def reset_backend() -> None:
    """Reset the backend (for testing)."""
    set_backend(None)


def get_auth_service() -> AuthService:
    return AuthService(get_backend())


def _bearer_token(authorization: str | None) -> str:
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token.strip()


async def get_current_session(
    authorization: str | None = Header(default=None),
    auth: AuthService = Depends(get_auth_service),
) -> AuthSession:
    """Resolve the request's bearer token, or 401."""
    token = _bearer_token(authorization)
    session = await auth.get_session(token)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


async def get_study_service(
    session: AuthSession = Depends(get_current_session),
) -> StudyService:
    """Study state for the signed-in user, freshly loaded."""
    service = StudyService(get_backend(), session.user.id, session.access_token)
    await service.refresh()
    return service


def backend_failure() -> HTTPException:
    """Error for a mutation the backend rejected (already logged)."""
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail="Backend request failed",
    )
