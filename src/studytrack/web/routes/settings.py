"""Timer settings endpoints."""

from fastapi import APIRouter, Depends

from studytrack.core.models import TimerSettings
from studytrack.services.study import StudyService
from studytrack.web.deps import backend_failure, get_study_service
from studytrack.web.schemas import TimerSettingsResponse, TimerSettingsUpdate
from studytrack.web.timers import get_timer_manager

router = APIRouter(prefix="/api/settings", tags=["settings"])


def _settings_response(settings: TimerSettings) -> TimerSettingsResponse:
    return TimerSettingsResponse(**settings.to_dict())


@router.get("", response_model=TimerSettingsResponse)
async def get_settings(
    study: StudyService = Depends(get_study_service),
) -> TimerSettingsResponse:
    """Get the user's timer settings."""
    return _settings_response(study.timer_settings)


@router.patch("", response_model=TimerSettingsResponse)
async def update_settings(
    request: TimerSettingsUpdate,
    study: StudyService = Depends(get_study_service),
) -> TimerSettingsResponse:
    """Update timer settings; a live idle timer picks up new durations."""
    settings = await study.update_timer_settings(**request.model_dump(exclude_none=True))
    if settings is None:
        raise backend_failure()

    manager = get_timer_manager()
    await manager.get_timer(study.user_id, study.access_token, settings)

    return _settings_response(settings)
