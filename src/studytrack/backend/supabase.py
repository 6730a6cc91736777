"""HTTP client for a hosted Supabase project.

Talks to the GoTrue auth endpoints (``/auth/v1``) and the PostgREST table
endpoints (``/rest/v1``). Row-level security is enforced by the hosted
service: table calls carry the user's access token as bearer credential.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from studytrack.backend.base import (
    AuthError,
    AuthResponse,
    AuthTokens,
    AuthUser,
    BackendConnectionError,
    BackendError,
    Filters,
    Row,
)

logger = structlog.get_logger(__name__)

AUTH_PATH = "/auth/v1"
REST_PATH = "/rest/v1"


def _filter_value(value: Any) -> str:
    """Encode an equality filter for PostgREST."""
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{value}"


def _error_message(response: httpx.Response) -> str:
    """Extract the human readable message from an error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("msg", "message", "error_description", "error"):
            if body.get(key):
                return str(body[key])
    return response.reason_phrase


def _parse_auth_response(body: dict[str, Any]) -> AuthResponse:
    """Parse a GoTrue sign-up/sign-in body.

    With a session the body holds tokens plus a nested ``user``; without
    one (e-mail confirmation pending) the body is the user itself.
    """
    if body.get("access_token"):
        tokens = AuthTokens(
            access_token=body["access_token"],
            refresh_token=body.get("refresh_token", ""),
            expires_in=int(body.get("expires_in", 3600)),
            token_type=body.get("token_type", "bearer"),
        )
        user_data = body.get("user")
        return AuthResponse(
            user=AuthUser.from_dict(user_data) if user_data else None,
            session=tokens,
        )

    user_data = body.get("user") or (body if body.get("id") else None)
    return AuthResponse(user=AuthUser.from_dict(user_data) if user_data else None)


class SupabaseBackend:
    """Async client for the hosted backend."""

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the client.

        Args:
            url: Project URL (e.g. https://xyz.supabase.co)
            api_key: Anon key for user traffic, or service-role key for hooks
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.url = url.rstrip("/")
        self._api_key = api_key
        self._client = httpx.AsyncClient(
            base_url=self.url,
            timeout=timeout,
            transport=transport,
            headers={"apikey": api_key, "Content-Type": "application/json"},
        )
        logger.info("backend_client_initialized", url=self.url)

    def _auth_header(self, access_token: str | None) -> dict[str, str]:
        return {"Authorization": f"Bearer {access_token or self._api_key}"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await self._client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            raise BackendConnectionError(
                f"Could not reach backend at {self.url}: {e}"
            ) from e

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "backend_request_failed",
                method=method,
                path=path,
                status=response.status_code,
                error=message,
            )
            error_cls = AuthError if path.startswith(AUTH_PATH) else BackendError
            raise error_cls(message, status_code=response.status_code)

        return response

    # -------------------------------------------------------------------------
    # Auth
    # -------------------------------------------------------------------------

    async def sign_up(
        self, email: str, password: str, metadata: dict[str, Any] | None = None
    ) -> AuthResponse:
        response = await self._request(
            "POST",
            f"{AUTH_PATH}/signup",
            json={"email": email, "password": password, "data": metadata or {}},
        )
        return _parse_auth_response(response.json())

    async def sign_in_with_password(self, email: str, password: str) -> AuthResponse:
        response = await self._request(
            "POST",
            f"{AUTH_PATH}/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        return _parse_auth_response(response.json())

    async def sign_out(self, access_token: str) -> None:
        await self._request(
            "POST", f"{AUTH_PATH}/logout", headers=self._auth_header(access_token)
        )

    async def get_user(self, access_token: str) -> AuthUser | None:
        try:
            response = await self._request(
                "GET", f"{AUTH_PATH}/user", headers=self._auth_header(access_token)
            )
        except AuthError as e:
            if e.status_code in (401, 403):
                return None
            raise
        return AuthUser.from_dict(response.json())

    # -------------------------------------------------------------------------
    # Tables
    # -------------------------------------------------------------------------

    async def select(
        self,
        table: str,
        filters: Filters | None = None,
        order: str | None = None,
        desc: bool = False,
        embed: str | None = None,
        access_token: str | None = None,
    ) -> list[Row]:
        params: dict[str, Any] = {"select": f"*,{embed}(*)" if embed else "*"}
        for key, value in (filters or {}).items():
            params[key] = _filter_value(value)
        if order:
            params["order"] = f"{order}.{'desc' if desc else 'asc'}"

        response = await self._request(
            "GET",
            f"{REST_PATH}/{table}",
            params=params,
            headers=self._auth_header(access_token),
        )
        return response.json()

    async def insert(self, table: str, row: Row, access_token: str | None = None) -> Row:
        response = await self._request(
            "POST",
            f"{REST_PATH}/{table}",
            json=row,
            headers={**self._auth_header(access_token), "Prefer": "return=representation"},
        )
        rows = response.json()
        if not rows:
            raise BackendError(f"Insert into {table} returned no row")
        return rows[0]

    async def update(
        self,
        table: str,
        values: Row,
        filters: Filters,
        access_token: str | None = None,
    ) -> list[Row]:
        response = await self._request(
            "PATCH",
            f"{REST_PATH}/{table}",
            params={key: _filter_value(value) for key, value in filters.items()},
            json=values,
            headers={**self._auth_header(access_token), "Prefer": "return=representation"},
        )
        return response.json()

    async def delete(
        self, table: str, filters: Filters, access_token: str | None = None
    ) -> None:
        await self._request(
            "DELETE",
            f"{REST_PATH}/{table}",
            params={key: _filter_value(value) for key, value in filters.items()},
            headers=self._auth_header(access_token),
        )

    async def aclose(self) -> None:
        await self._client.aclose()
