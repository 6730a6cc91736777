"""Pydantic schemas for the Web API.

Serialization models for auth, subjects/topics, timer sessions, settings,
stats and the live timer.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from studytrack import __version__
from studytrack.core.models import NotificationSound, SessionType

HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


# =============================================================================
# AUTH SCHEMAS
# =============================================================================


class RegisterRequest(BaseModel):
    """Request body for creating an account."""

    name: str = Field(..., max_length=100)
    email: str = Field(..., max_length=200)
    password: str = Field(..., max_length=200)


class LoginRequest(BaseModel):
    """Request body for signing in."""

    email: str = Field(..., max_length=200)
    password: str = Field(..., max_length=200)


class UserResponse(BaseModel):
    """Profile of the signed-in user."""

    id: str
    name: str
    email: str
    avatar: str | None = None
    created_at: str = ""


class AuthSessionResponse(BaseModel):
    """Tokens and profile returned after sign-in."""

    access_token: str
    refresh_token: str = ""
    expires_in: int = 3600
    token_type: str = "bearer"
    user: UserResponse


# =============================================================================
# SUBJECT / TOPIC SCHEMAS
# =============================================================================


class SubjectCreate(BaseModel):
    """Request body for creating a subject."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field(default="#ffffff", pattern=HEX_COLOR_PATTERN)


class SubjectUpdate(BaseModel):
    """Partial update of a subject."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=1, max_length=100)
    color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)
    progress: float | None = Field(default=None, ge=0, le=100)


class TopicCreate(BaseModel):
    """Request body for adding a topic."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)


class TopicUpdate(BaseModel):
    """Partial update of a topic."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=200)
    completed: bool | None = None
    order: int | None = Field(default=None, ge=0)


class TopicOrderRequest(BaseModel):
    """New topic sequence for a subject."""

    topic_ids: list[str]


class TopicResponse(BaseModel):
    """Response for a topic."""

    id: str
    subject_id: str
    title: str
    completed: bool
    order: int
    created_at: str = ""


class SubjectResponse(BaseModel):
    """Response for a subject with its ordered checklist."""

    id: str
    name: str
    color: str
    progress: float
    topics: list[TopicResponse]
    completed_topics: int
    total_topics: int
    created_at: str = ""


class SubjectListResponse(BaseModel):
    """Response for list of subjects."""

    subjects: list[SubjectResponse]
    count: int


# =============================================================================
# TIMER SESSION / SETTINGS SCHEMAS
# =============================================================================


class TimerSessionCreate(BaseModel):
    """Request body for recording a session (durations in minutes)."""

    type: SessionType = "focus"
    duration: float = Field(..., gt=0)
    completed: bool = True
    start_time: datetime
    end_time: datetime | None = None
    subject_id: str | None = None


class TimerSessionResponse(BaseModel):
    """Response for a recorded session."""

    id: str | None
    type: str
    duration: float
    completed: bool
    start_time: str
    end_time: str | None = None
    subject_id: str | None = None


class TimerSessionListResponse(BaseModel):
    """Response for list of sessions (newest first)."""

    sessions: list[TimerSessionResponse]
    count: int


class TimerSettingsResponse(BaseModel):
    """Timer preferences (minutes)."""

    focus_time: int
    short_break: int
    long_break: int
    auto_start: bool
    sound_enabled: bool
    fullscreen_mode: bool
    notification_sound: str


class TimerSettingsUpdate(BaseModel):
    """Partial update of timer preferences."""

    focus_time: int | None = Field(default=None, ge=1, le=180)
    short_break: int | None = Field(default=None, ge=1, le=60)
    long_break: int | None = Field(default=None, ge=1, le=120)
    auto_start: bool | None = None
    sound_enabled: bool | None = None
    fullscreen_mode: bool | None = None
    notification_sound: NotificationSound | None = None


# =============================================================================
# STATS SCHEMAS
# =============================================================================


class UserStatsResponse(BaseModel):
    """Aggregate stats (minutes)."""

    total_study_time: float
    sessions_completed: int
    streak_days: int
    subjects_completed: int
    average_session_length: float
    study_time: str


class SubjectProgressResponse(BaseModel):
    """Per-subject progress line in analytics."""

    id: str
    name: str
    progress: float
    completed_topics: int
    total_topics: int


class AnalyticsResponse(BaseModel):
    """Analytics overview."""

    average_progress: float
    completed_subjects: int
    total_subjects: int
    study_hours: int
    study_time: str
    streak_days: int
    subjects: list[SubjectProgressResponse]
    recent_sessions: list[TimerSessionResponse]


# =============================================================================
# LIVE TIMER SCHEMAS
# =============================================================================


class TimerStartRequest(BaseModel):
    """Optional subject to attach to the session being started."""

    subject_id: str | None = None


class TimerModeRequest(BaseModel):
    """Mode switch request."""

    mode: Literal["focus", "short", "long"]


class TimerStateResponse(BaseModel):
    """Snapshot of the user's timer."""

    mode: str
    label: str
    time_left: int
    clock: str
    duration: int
    progress: float
    is_running: bool
    session_started: bool
    sound_enabled: bool
    auto_start_pending: bool
    subject_id: str | None = None
    play_sound: bool = False


# =============================================================================
# HOOK / HEALTH SCHEMAS
# =============================================================================


class ProvisionRequest(BaseModel):
    """Payload sent by the auth service when a user is created."""

    record: dict[str, Any]


class MessageResponse(BaseModel):
    """Plain message response."""

    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = __version__
    backend: str = ""
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
