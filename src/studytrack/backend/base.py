"""Backend interface: hosted auth plus row-level table CRUD.

The hosted backend-as-a-service owns persistence, authentication and
row-level access rules. The application only talks to it through the
``Backend`` protocol so the hosted client and the in-process memory
backend are interchangeable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

Row = dict[str, Any]
Filters = dict[str, Any]

# Tables used by the application
USERS_TABLE = "users"
SUBJECTS_TABLE = "subjects"
TOPICS_TABLE = "topics"
TIMER_SESSIONS_TABLE = "timer_sessions"
USER_SETTINGS_TABLE = "user_settings"


# =============================================================================
# ERRORS
# =============================================================================


class BackendError(Exception):
    """Error returned by (or while talking to) the hosted backend."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class AuthError(BackendError):
    """Auth endpoint rejected the request (bad credentials, duplicate user...)."""

    pass


class BackendConnectionError(BackendError):
    """Could not reach the hosted backend."""

    pass


# =============================================================================
# AUTH RECORDS
# =============================================================================


@dataclass
class AuthUser:
    """Identity as known by the auth service."""

    id: str
    email: str
    user_metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AuthUser:
        return cls(
            id=data["id"],
            email=data.get("email", ""),
            user_metadata=data.get("user_metadata") or {},
        )


@dataclass
class AuthTokens:
    """Session tokens issued on sign-in."""

    access_token: str
    refresh_token: str = ""
    expires_in: int = 3600
    token_type: str = "bearer"


@dataclass
class AuthResponse:
    """Result of sign-up / sign-in.

    ``session`` is None when the account still needs e-mail confirmation.
    """

    user: AuthUser | None
    session: AuthTokens | None = None


# =============================================================================
# PROTOCOL
# =============================================================================


class Backend(Protocol):
    """Protocol for the hosted backend - allows swappable implementations."""

    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any] | None = None
    ) -> AuthResponse:
        """Register a new account. Raises AuthError on rejection."""
        ...

    async def sign_in_with_password(self, email: str, password: str) -> AuthResponse:
        """Exchange credentials for a session. Raises AuthError on rejection."""
        ...

    async def sign_out(self, access_token: str) -> None:
        ...

    async def get_user(self, access_token: str) -> AuthUser | None:
        """Resolve the user behind an access token, or None if invalid."""
        ...

    async def select(
        self,
        table: str,
        filters: Filters | None = None,
        order: str | None = None,
        desc: bool = False,
        embed: str | None = None,
        access_token: str | None = None,
    ) -> list[Row]:
        """Select rows matching equality ``filters``.

        ``embed`` names a child table whose rows are nested under the
        parent (e.g. ``topics`` inside ``subjects``).
        """
        ...

    async def insert(self, table: str, row: Row, access_token: str | None = None) -> Row:
        """Insert a row and return it as stored."""
        ...

    async def update(
        self,
        table: str,
        values: Row,
        filters: Filters,
        access_token: str | None = None,
    ) -> list[Row]:
        """Update rows matching ``filters`` and return them."""
        ...

    async def delete(
        self, table: str, filters: Filters, access_token: str | None = None
    ) -> None:
        ...

    async def aclose(self) -> None:
        ...
