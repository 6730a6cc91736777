"""In-process backend for local development and tests.

Keeps auth users and table rows in dictionaries and behaves like the
hosted service for the operations the application uses: it provisions
new accounts through the same hook, cascades subject deletes to topics,
stamps ``id``/``created_at`` on insert and rejects unknown access tokens.
"""

from __future__ import annotations

import copy
import hashlib
import secrets
import uuid
from dataclasses import dataclass, field
from typing import Any

import structlog

from studytrack.backend.base import (
    SUBJECTS_TABLE,
    TOPICS_TABLE,
    AuthError,
    AuthResponse,
    AuthTokens,
    AuthUser,
    BackendError,
    Filters,
    Row,
)
from studytrack.backend.hooks import provision_user
from studytrack.core.models import DEFAULT_SUBJECT_COLOR, utc_now_iso

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 6

# Column defaults applied on insert, per table
TABLE_DEFAULTS: dict[str, dict[str, Any]] = {
    SUBJECTS_TABLE: {"color": DEFAULT_SUBJECT_COLOR, "progress": 0},
    TOPICS_TABLE: {"completed": False},
    "timer_sessions": {"completed": False, "end_time": None, "subject_id": None},
}

# Child tables removed with their parent row (foreign key cascade)
CASCADES: dict[str, tuple[str, str]] = {
    SUBJECTS_TABLE: (TOPICS_TABLE, "subject_id"),
}


def _hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def _matches(row: Row, filters: Filters | None) -> bool:
    if not filters:
        return True
    return all(row.get(key) == value for key, value in filters.items())


@dataclass
class _AuthAccount:
    user: AuthUser
    password_hash: str
    confirmed: bool = True


@dataclass
class MemoryBackend:
    """Backend held entirely in memory."""

    require_email_confirmation: bool = False
    _accounts: dict[str, _AuthAccount] = field(default_factory=dict)
    _tokens: dict[str, str] = field(default_factory=dict)
    _tables: dict[str, dict[str, Row]] = field(default_factory=dict)

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    def _issue_tokens(self, user: AuthUser) -> AuthTokens:
        token = secrets.token_urlsafe(24)
        self._tokens[token] = user.id
        return AuthTokens(access_token=token, refresh_token=secrets.token_urlsafe(24))

    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any] | None = None
    ) -> AuthResponse:
        email = email.lower()
        if not email:
            raise AuthError("Email is required", status_code=400)
        if len(password) < MIN_PASSWORD_LENGTH:
            raise AuthError(
                f"Password should be at least {MIN_PASSWORD_LENGTH} characters",
                status_code=422,
            )
        if email in self._accounts:
            raise AuthError("User already registered", status_code=422)

        user = AuthUser(id=str(uuid.uuid4()), email=email, user_metadata=dict(metadata or {}))
        # The account only exists once its profile and settings rows do
        await provision_user(
            self,
            {"id": user.id, "email": email, "raw_user_meta_data": user.user_metadata},
        )
        self._accounts[email] = _AuthAccount(
            user=user,
            password_hash=_hash_password(password),
            confirmed=not self.require_email_confirmation,
        )
        logger.debug("memory_user_signed_up", user_id=user.id)

        if self.require_email_confirmation:
            return AuthResponse(user=user, session=None)
        return AuthResponse(user=user, session=self._issue_tokens(user))

    def confirm_email(self, email: str) -> bool:
        """Mark an account as confirmed. Returns False if unknown."""
        account = self._accounts.get(email.lower())
        if account is None:
            return False
        account.confirmed = True
        return True

    async def sign_in_with_password(self, email: str, password: str) -> AuthResponse:
        account = self._accounts.get(email.lower())
        if account is None or account.password_hash != _hash_password(password):
            raise AuthError("Invalid login credentials", status_code=400)
        if not account.confirmed:
            raise AuthError("Email not confirmed", status_code=400)
        return AuthResponse(user=account.user, session=self._issue_tokens(account.user))

    async def sign_out(self, access_token: str) -> None:
        self._tokens.pop(access_token, None)

    async def get_user(self, access_token: str) -> AuthUser | None:
        user_id = self._tokens.get(access_token)
        if user_id is None:
            return None
        for account in self._accounts.values():
            if account.user.id == user_id:
                return account.user
        return None

    def _check_token(self, access_token: str | None) -> None:
        # None means service-level access
        if access_token is not None and access_token not in self._tokens:
            raise BackendError("Invalid JWT", status_code=401)

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    def _table(self, name: str) -> dict[str, Row]:
        return self._tables.setdefault(name, {})

    async def select(
        self,
        table: str,
        filters: Filters | None = None,
        order: str | None = None,
        desc: bool = False,
        embed: str | None = None,
        access_token: str | None = None,
    ) -> list[Row]:
        self._check_token(access_token)
        rows = [copy.deepcopy(r) for r in self._table(table).values() if _matches(r, filters)]
        if order:
            rows.sort(key=lambda r: (r.get(order) is None, r.get(order)), reverse=desc)
        if embed:
            child_table, fk = CASCADES.get(table, (embed, f"{table.rstrip('s')}_id"))
            for row in rows:
                row[embed] = [
                    copy.deepcopy(child)
                    for child in self._table(child_table).values()
                    if child.get(fk) == row["id"]
                ]
        return rows

    async def insert(self, table: str, row: Row, access_token: str | None = None) -> Row:
        self._check_token(access_token)
        stored = {**TABLE_DEFAULTS.get(table, {}), **copy.deepcopy(row)}
        stored.setdefault("id", str(uuid.uuid4()))
        now = utc_now_iso()
        stored.setdefault("created_at", now)
        stored.setdefault("updated_at", now)

        rows = self._table(table)
        if stored["id"] in rows:
            raise BackendError(
                f'duplicate key value violates unique constraint "{table}_pkey"',
                status_code=409,
            )
        rows[stored["id"]] = stored
        return copy.deepcopy(stored)

    async def update(
        self,
        table: str,
        values: Row,
        filters: Filters,
        access_token: str | None = None,
    ) -> list[Row]:
        self._check_token(access_token)
        updated = []
        for row in self._table(table).values():
            if _matches(row, filters):
                row.update(copy.deepcopy(values))
                updated.append(copy.deepcopy(row))
        return updated

    async def delete(
        self, table: str, filters: Filters, access_token: str | None = None
    ) -> None:
        self._check_token(access_token)
        rows = self._table(table)
        doomed = [row_id for row_id, row in rows.items() if _matches(row, filters)]
        for row_id in doomed:
            del rows[row_id]
            if table in CASCADES:
                child_table, fk = CASCADES[table]
                await self.delete(child_table, {fk: row_id})

    async def aclose(self) -> None:
        return None
