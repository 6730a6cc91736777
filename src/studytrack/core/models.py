"""Domain records mirrored from the hosted backend tables.

Each record maps 1:1 to a remote row (snake_case columns) and can be
rebuilt with ``from_row`` and serialized for the API with ``to_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

# =============================================================================
# CONSTANTS
# =============================================================================

SessionType = Literal["focus", "pomodoro", "custom"]
NotificationSound = Literal["bell", "chime", "beep"]

SESSION_TYPES: tuple[str, ...] = ("focus", "pomodoro", "custom")
NOTIFICATION_SOUNDS: tuple[str, ...] = ("bell", "chime", "beep")

DEFAULT_SUBJECT_COLOR = "#ffffff"
DEFAULT_USER_NAME = "User"


def utc_now() -> datetime:
    """Current UTC time without microseconds."""
    return datetime.now(timezone.utc).replace(microsecond=0)


def utc_now_iso() -> str:
    """Current UTC time as ISO8601 string."""
    return utc_now().isoformat()


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO8601 timestamp as returned by the backend.

    Accepts a trailing ``Z`` and returns timezone-aware datetimes
    (naive values are assumed to be UTC).
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _known(value: Any, allowed: tuple[str, ...]) -> Any:
    """``value`` if it is one of ``allowed``, else the first (default) entry."""
    return value if value in allowed else allowed[0]


# =============================================================================
# RECORDS
# =============================================================================


@dataclass
class User:
    """Profile row from the ``users`` table."""

    id: str
    name: str
    email: str
    avatar: str | None = None
    created_at: str = ""

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> User:
        return cls(
            id=row["id"],
            name=row.get("name") or DEFAULT_USER_NAME,
            email=row.get("email", ""),
            avatar=row.get("avatar_url"),
            created_at=row.get("created_at", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "avatar": self.avatar,
            "created_at": self.created_at,
        }


@dataclass
class Topic:
    """Checklist item within a subject."""

    id: str
    subject_id: str
    title: str
    completed: bool = False
    order: int = 0
    created_at: str = ""

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Topic:
        return cls(
            id=row["id"],
            subject_id=row.get("subject_id", ""),
            title=row["title"],
            completed=bool(row.get("completed", False)),
            order=int(row.get("order", 0)),
            created_at=row.get("created_at", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "subject_id": self.subject_id,
            "title": self.title,
            "completed": self.completed,
            "order": self.order,
            "created_at": self.created_at,
        }


@dataclass
class Subject:
    """Top-level study container holding an ordered topic checklist."""

    id: str
    name: str
    color: str = DEFAULT_SUBJECT_COLOR
    progress: float = 0.0
    topics: list[Topic] = field(default_factory=list)
    created_at: str = ""

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Subject:
        """Build from a ``subjects`` row, optionally with embedded ``topics``."""
        topics = [Topic.from_row(t) for t in row.get("topics") or []]
        topics.sort(key=lambda t: t.order)
        return cls(
            id=row["id"],
            name=row["name"],
            color=row.get("color") or DEFAULT_SUBJECT_COLOR,
            progress=float(row.get("progress") or 0),
            topics=topics,
            created_at=row.get("created_at", ""),
        )

    def get_topic(self, topic_id: str) -> Topic | None:
        for topic in self.topics:
            if topic.id == topic_id:
                return topic
        return None

    @property
    def completed_topics(self) -> int:
        return sum(1 for t in self.topics if t.completed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "color": self.color,
            "progress": self.progress,
            "topics": [t.to_dict() for t in self.topics],
            "completed_topics": self.completed_topics,
            "total_topics": len(self.topics),
            "created_at": self.created_at,
        }


@dataclass
class TimerSession:
    """A finished (or abandoned) focus or break interval.

    ``duration`` is expressed in minutes.
    """

    type: SessionType
    duration: float
    completed: bool
    start_time: datetime
    end_time: datetime | None = None
    subject_id: str | None = None
    id: str | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> TimerSession:
        return cls(
            id=row.get("id"),
            type=_known(row.get("type"), SESSION_TYPES),
            duration=row.get("duration", 0),
            completed=bool(row.get("completed", False)),
            start_time=parse_timestamp(row["start_time"]),
            end_time=parse_timestamp(row.get("end_time")),
            subject_id=row.get("subject_id"),
        )

    def to_row(self, user_id: str) -> dict[str, Any]:
        """Row payload for inserting into ``timer_sessions``."""
        return {
            "user_id": user_id,
            "type": self.type,
            "duration": self.duration,
            "completed": self.completed,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "subject_id": self.subject_id,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "duration": self.duration,
            "completed": self.completed,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "subject_id": self.subject_id,
        }


@dataclass
class TimerSettings:
    """Per-user timer preferences. Durations are in minutes."""

    focus_time: int = 25
    short_break: int = 5
    long_break: int = 15
    auto_start: bool = False
    sound_enabled: bool = True
    fullscreen_mode: bool = False
    notification_sound: NotificationSound = "bell"

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> TimerSettings:
        defaults = cls()
        return cls(
            focus_time=row.get("focus_time", defaults.focus_time),
            short_break=row.get("short_break", defaults.short_break),
            long_break=row.get("long_break", defaults.long_break),
            auto_start=row.get("auto_start", defaults.auto_start),
            sound_enabled=row.get("sound_enabled", defaults.sound_enabled),
            fullscreen_mode=row.get("fullscreen_mode", defaults.fullscreen_mode),
            notification_sound=_known(row.get("notification_sound"), NOTIFICATION_SOUNDS),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "focus_time": self.focus_time,
            "short_break": self.short_break,
            "long_break": self.long_break,
            "auto_start": self.auto_start,
            "sound_enabled": self.sound_enabled,
            "fullscreen_mode": self.fullscreen_mode,
            "notification_sound": self.notification_sound,
        }

    def to_row(self, user_id: str) -> dict[str, Any]:
        return {"user_id": user_id, **self.to_dict()}


@dataclass
class UserStats:
    """Aggregates derived from subjects and timer sessions (minutes)."""

    total_study_time: float = 0
    sessions_completed: int = 0
    streak_days: int = 0
    subjects_completed: int = 0
    average_session_length: float = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_study_time": self.total_study_time,
            "sessions_completed": self.sessions_completed,
            "streak_days": self.streak_days,
            "subjects_completed": self.subjects_completed,
            "average_session_length": self.average_session_length,
        }
