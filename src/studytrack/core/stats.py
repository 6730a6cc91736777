"""Study statistics and analytics aggregates."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Any, Sequence

from studytrack.core.models import Subject, TimerSession, UserStats
from studytrack.core.progress import is_subject_complete

RECENT_SESSIONS_LIMIT = 7


def _local_day(moment: datetime) -> date:
    return moment.astimezone().date()


def studied_on(sessions: Sequence[TimerSession], day: date) -> bool:
    """True if a completed session started on ``day`` (local calendar)."""
    return any(s.completed and _local_day(s.start_time) == day for s in sessions)


def compute_streak(sessions: Sequence[TimerSession], today: date | None = None) -> int:
    """Current study streak in days.

    Simplified rule: 1 when a completed session started today, 2 when
    there is also one yesterday. Longer histories still report 2.
    """
    today = today or date.today()
    if not studied_on(sessions, today):
        return 0
    if studied_on(sessions, today - timedelta(days=1)):
        return 2
    return 1


def calculate_stats(
    subjects: Sequence[Subject],
    sessions: Sequence[TimerSession],
    today: date | None = None,
) -> UserStats:
    """Aggregate user stats from subjects and timer sessions.

    Args:
        subjects: User subjects (progress already computed)
        sessions: User timer sessions
        today: Reference day for the streak (defaults to local today)

    Returns:
        UserStats with minute-based totals.
    """
    completed = [s for s in sessions if s.completed]
    total_time = sum(s.duration for s in completed)
    average = total_time / len(completed) if completed else 0

    return UserStats(
        total_study_time=total_time,
        sessions_completed=len(completed),
        streak_days=compute_streak(sessions, today),
        subjects_completed=sum(1 for s in subjects if is_subject_complete(s)),
        average_session_length=average,
    )


def recent_sessions(
    sessions: Sequence[TimerSession], limit: int = RECENT_SESSIONS_LIMIT
) -> list[TimerSession]:
    """Most recent sessions first."""
    ordered = sorted(sessions, key=lambda s: s.start_time, reverse=True)
    return ordered[:limit]


def format_study_time(minutes: float) -> str:
    """Format minutes as ``"{h}h {m}m"``."""
    total = int(minutes)
    return f"{total // 60}h {total % 60}m"


def build_analytics(
    subjects: Sequence[Subject],
    sessions: Sequence[TimerSession],
    stats: UserStats,
) -> dict[str, Any]:
    """Analytics overview: averages, per-subject progress and recent sessions."""
    total_subjects = len(subjects)
    average_progress = (
        sum(s.progress for s in subjects) / total_subjects if total_subjects else 0.0
    )

    return {
        "average_progress": average_progress,
        "completed_subjects": stats.subjects_completed,
        "total_subjects": total_subjects,
        "study_hours": int(stats.total_study_time // 60),
        "study_time": format_study_time(stats.total_study_time),
        "streak_days": stats.streak_days,
        "subjects": [
            {
                "id": s.id,
                "name": s.name,
                "progress": s.progress,
                "completed_topics": s.completed_topics,
                "total_topics": len(s.topics),
            }
            for s in subjects
        ],
        "recent_sessions": [s.to_dict() for s in recent_sessions(sessions)],
    }
