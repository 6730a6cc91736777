"""Timer session history endpoints."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status

from studytrack.core.models import TimerSession
from studytrack.services.study import StudyService
from studytrack.web.deps import backend_failure, get_study_service
from studytrack.web.schemas import (
    TimerSessionCreate,
    TimerSessionListResponse,
    TimerSessionResponse,
)

router = APIRouter(prefix="/api/sessions", tags=["sessions"])


def session_response(session: TimerSession) -> TimerSessionResponse:
    return TimerSessionResponse(**session.to_dict())


def _aware(moment: datetime | None) -> datetime | None:
    if moment is not None and moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


@router.get("", response_model=TimerSessionListResponse)
async def list_sessions(
    study: StudyService = Depends(get_study_service),
) -> TimerSessionListResponse:
    """List recorded sessions, newest first."""
    sessions = [session_response(s) for s in study.timer_sessions]
    return TimerSessionListResponse(sessions=sessions, count=len(sessions))


@router.post("", response_model=TimerSessionResponse, status_code=status.HTTP_201_CREATED)
async def add_session(
    request: TimerSessionCreate,
    study: StudyService = Depends(get_study_service),
) -> TimerSessionResponse:
    """Record a session run outside the server-side timer."""
    if request.subject_id and study.get_subject(request.subject_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Subject '{request.subject_id}' not found",
        )

    stored = await study.add_timer_session(
        TimerSession(
            type=request.type,
            duration=request.duration,
            completed=request.completed,
            start_time=_aware(request.start_time),
            end_time=_aware(request.end_time),
            subject_id=request.subject_id,
        )
    )
    if stored is None:
        raise backend_failure()
    return session_response(stored)
