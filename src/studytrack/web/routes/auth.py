"""Auth endpoints: register, login, logout, current session."""

from fastapi import APIRouter, Depends, HTTPException, status

from studytrack.services.auth import AuthResult, AuthService, AuthSession
from studytrack.web.deps import get_auth_service, get_current_session
from studytrack.web.schemas import (
    AuthSessionResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from studytrack.web.timers import get_timer_manager

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _user_response(session: AuthSession) -> UserResponse:
    user = session.user
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        avatar=user.avatar,
        created_at=user.created_at,
    )


def _session_response(result: AuthResult) -> AuthSessionResponse:
    if not result.ok or result.session is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=result.error or "Authentication failed",
        )
    session = result.session
    return AuthSessionResponse(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_in=session.expires_in,
        user=_user_response(session),
    )


@router.post(
    "/register",
    response_model=AuthSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> AuthSessionResponse:
    """Create an account and sign in.

    When e-mail confirmation is required the response is 400 with the
    confirmation message.
    """
    result = await auth.sign_up(request.name, request.email, request.password)
    return _session_response(result)


@router.post("/login", response_model=AuthSessionResponse)
async def login(
    request: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> AuthSessionResponse:
    """Sign in with e-mail and password."""
    result = await auth.sign_in(request.email, request.password)
    return _session_response(result)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    session: AuthSession = Depends(get_current_session),
    auth: AuthService = Depends(get_auth_service),
) -> None:
    """Sign out, drop the live timer and invalidate the access token."""
    await get_timer_manager().remove_timer(session.user.id)
    await auth.sign_out(session.access_token)


@router.get("/session", response_model=UserResponse)
async def current_session(
    session: AuthSession = Depends(get_current_session),
) -> UserResponse:
    """Profile of the signed-in user."""
    return _user_response(session)
