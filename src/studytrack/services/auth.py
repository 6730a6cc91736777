"""Authentication flows on top of the hosted auth service.

Every failure is logged and surfaced as a single user-facing message in
``AuthResult.error``; callers never see backend exceptions.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import structlog

from studytrack.backend.base import (
    USERS_TABLE,
    AuthError,
    AuthTokens,
    Backend,
    BackendError,
)
from studytrack.core.models import User

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 6

CONFIRM_EMAIL_MESSAGE = (
    "Please check your email and click the confirmation link to complete registration."
)
LOGIN_UNEXPECTED_MESSAGE = "An unexpected error occurred during login"
REGISTER_UNEXPECTED_MESSAGE = "An unexpected error occurred during registration"

# Email validation pattern
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$")


def validate_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email))


@dataclass
class AuthSession:
    """Signed-in user: access token plus profile."""

    access_token: str
    user: User
    refresh_token: str = ""
    expires_in: int = 3600


@dataclass
class AuthResult:
    """Outcome of a sign-up or sign-in attempt."""

    ok: bool
    session: AuthSession | None = None
    error: str | None = None

    @classmethod
    def failure(cls, message: str) -> AuthResult:
        return cls(ok=False, error=message)


class AuthService:
    """Sign-up, sign-in, sign-out and session lookup."""

    def __init__(self, backend: Backend):
        self.backend = backend

    async def _load_profile(self, user_id: str, access_token: str | None) -> User | None:
        try:
            rows = await self.backend.select(
                USERS_TABLE, {"id": user_id}, access_token=access_token
            )
        except BackendError as e:
            logger.error("profile_load_failed", user_id=user_id, error=str(e))
            return None
        if not rows:
            logger.warning("profile_missing", user_id=user_id)
            return None
        return User.from_row(rows[0])

    async def _build_session(self, tokens: AuthTokens, user_id: str) -> AuthSession | None:
        profile = await self._load_profile(user_id, tokens.access_token)
        if profile is None:
            return None
        return AuthSession(
            access_token=tokens.access_token,
            user=profile,
            refresh_token=tokens.refresh_token,
            expires_in=tokens.expires_in,
        )

    async def sign_up(self, name: str, email: str, password: str) -> AuthResult:
        """Register a new account.

        The hosted hook provisions the profile and settings rows; when the
        project requires e-mail confirmation no session is returned and the
        result carries the confirmation message.
        """
        name = name.strip()
        email = email.strip()

        if not name or not email:
            return AuthResult.failure("Name and email are required")
        if not validate_email(email):
            return AuthResult.failure("Invalid email format")
        if len(password) < MIN_PASSWORD_LENGTH:
            return AuthResult.failure(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        try:
            response = await self.backend.sign_up(email, password, {"name": name})
        except AuthError as e:
            logger.error("registration_error", email=email, error=e.message)
            return AuthResult.failure(e.message)
        except BackendError as e:
            logger.error("registration_unexpected_error", email=email, error=str(e))
            return AuthResult.failure(REGISTER_UNEXPECTED_MESSAGE)

        if response.user is None:
            return AuthResult.failure(REGISTER_UNEXPECTED_MESSAGE)

        logger.info("registration_successful", email=response.user.email)

        if response.session is None:
            return AuthResult.failure(CONFIRM_EMAIL_MESSAGE)

        session = await self._build_session(response.session, response.user.id)
        if session is None:
            return AuthResult.failure(REGISTER_UNEXPECTED_MESSAGE)
        return AuthResult(ok=True, session=session)

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Sign in with e-mail and password."""
        email = email.strip()

        try:
            response = await self.backend.sign_in_with_password(email, password)
        except AuthError as e:
            logger.error("login_error", email=email, error=e.message)
            return AuthResult.failure(e.message)
        except BackendError as e:
            logger.error("login_unexpected_error", email=email, error=str(e))
            return AuthResult.failure(LOGIN_UNEXPECTED_MESSAGE)

        if response.user is None or response.session is None:
            return AuthResult.failure(LOGIN_UNEXPECTED_MESSAGE)

        logger.info("login_successful", email=response.user.email)

        session = await self._build_session(response.session, response.user.id)
        if session is None:
            return AuthResult.failure(LOGIN_UNEXPECTED_MESSAGE)
        return AuthResult(ok=True, session=session)

    async def sign_out(self, access_token: str) -> None:
        try:
            await self.backend.sign_out(access_token)
        except BackendError as e:
            logger.error("logout_error", error=str(e))

    async def get_session(self, access_token: str) -> AuthSession | None:
        """Resolve an access token into a session with profile, or None."""
        try:
            auth_user = await self.backend.get_user(access_token)
        except BackendError as e:
            logger.error("session_check_failed", error=str(e))
            return None

        if auth_user is None:
            return None

        profile = await self._load_profile(auth_user.id, access_token)
        if profile is None:
            return None
        return AuthSession(access_token=access_token, user=profile)
