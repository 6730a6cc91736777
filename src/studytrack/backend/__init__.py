"""Hosted backend access (auth + table CRUD).

Provides:
- Backend protocol and auth records
- SupabaseBackend: httpx client for the hosted project
- MemoryBackend: in-process backend for development and tests
- provision_user: profile + default settings on account creation
"""

from studytrack.backend.base import (
    AuthError,
    AuthResponse,
    AuthTokens,
    AuthUser,
    Backend,
    BackendConnectionError,
    BackendError,
)
from studytrack.backend.factory import create_backend, create_service_backend
from studytrack.backend.hooks import provision_user
from studytrack.backend.memory import MemoryBackend
from studytrack.backend.supabase import SupabaseBackend

__all__ = [
    "AuthError",
    "AuthResponse",
    "AuthTokens",
    "AuthUser",
    "Backend",
    "BackendConnectionError",
    "BackendError",
    "MemoryBackend",
    "SupabaseBackend",
    "create_backend",
    "create_service_backend",
    "provision_user",
]
