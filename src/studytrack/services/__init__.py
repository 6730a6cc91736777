"""Application services: authentication and per-user study state."""

from studytrack.services.auth import AuthResult, AuthService, AuthSession
from studytrack.services.study import StudyService

__all__ = [
    "AuthResult",
    "AuthService",
    "AuthSession",
    "StudyService",
]
