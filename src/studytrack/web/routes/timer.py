"""Live focus timer endpoints.

The countdown runs server-side; clients poll ``GET /api/timer`` for the
current snapshot. A pending sound cue is delivered once and then cleared.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from studytrack.services.study import StudyService
from studytrack.web.deps import get_study_service
from studytrack.web.schemas import TimerModeRequest, TimerStartRequest, TimerStateResponse
from studytrack.web.timers import UserTimer, get_timer_manager

router = APIRouter(prefix="/api/timer", tags=["timer"])


async def _user_timer(study: StudyService) -> UserTimer:
    manager = get_timer_manager()
    return await manager.get_timer(study.user_id, study.access_token, study.timer_settings)


def _state_response(entry: UserTimer) -> TimerStateResponse:
    response = TimerStateResponse(**entry.to_dict())
    entry.play_sound = False
    return response


@router.get("", response_model=TimerStateResponse)
async def get_timer(
    study: StudyService = Depends(get_study_service),
) -> TimerStateResponse:
    """Current timer state."""
    return _state_response(await _user_timer(study))


@router.post("/start", response_model=TimerStateResponse)
async def start_timer(
    request: TimerStartRequest | None = None,
    study: StudyService = Depends(get_study_service),
) -> TimerStateResponse:
    """Start or resume the countdown."""
    subject_id = request.subject_id if request else None
    if subject_id and study.get_subject(subject_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Subject '{subject_id}' not found",
        )
    entry = await _user_timer(study)
    entry.timer.start(subject_id)
    return _state_response(entry)


@router.post("/pause", response_model=TimerStateResponse)
async def pause_timer(
    study: StudyService = Depends(get_study_service),
) -> TimerStateResponse:
    """Pause the countdown; the session stays open."""
    entry = await _user_timer(study)
    entry.timer.pause()
    return _state_response(entry)


@router.post("/reset", response_model=TimerStateResponse)
async def reset_timer(
    study: StudyService = Depends(get_study_service),
) -> TimerStateResponse:
    """Abandon the session and restore the full duration."""
    entry = await _user_timer(study)
    entry.timer.reset()
    return _state_response(entry)


@router.put("/mode", response_model=TimerStateResponse)
async def set_timer_mode(
    request: TimerModeRequest,
    study: StudyService = Depends(get_study_service),
) -> TimerStateResponse:
    """Switch between focus and break modes (not while a session is open)."""
    entry = await _user_timer(study)
    if not entry.timer.set_mode(request.mode):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Cannot change mode while a session is in progress",
        )
    return _state_response(entry)


@router.post("/sound", response_model=TimerStateResponse)
async def toggle_sound(
    study: StudyService = Depends(get_study_service),
) -> TimerStateResponse:
    """Toggle the completion sound for this timer."""
    entry = await _user_timer(study)
    entry.timer.toggle_sound()
    return _state_response(entry)
