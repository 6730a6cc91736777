"""Stats, analytics and data export endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from studytrack.core.models import utc_now
from studytrack.core.stats import format_study_time
from studytrack.services.auth import AuthSession
from studytrack.services.study import StudyService, export_filename
from studytrack.web.deps import get_current_session, get_study_service
from studytrack.web.schemas import AnalyticsResponse, UserStatsResponse

router = APIRouter(prefix="/api", tags=["analytics"])


@router.get("/stats", response_model=UserStatsResponse)
async def get_stats(
    study: StudyService = Depends(get_study_service),
) -> UserStatsResponse:
    """Totals, averages and the current streak."""
    stats = study.stats
    return UserStatsResponse(
        **stats.to_dict(),
        study_time=format_study_time(stats.total_study_time),
    )


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    study: StudyService = Depends(get_study_service),
) -> AnalyticsResponse:
    """Analytics overview across subjects and recent sessions."""
    return AnalyticsResponse(**study.analytics())


@router.get("/export")
async def export_data(
    session: AuthSession = Depends(get_current_session),
    study: StudyService = Depends(get_study_service),
) -> JSONResponse:
    """Download the user's profile, subjects, sessions and stats as JSON."""
    exported_at = utc_now()
    return JSONResponse(
        content=study.export_data(session.user, exported_at),
        headers={
            "Content-Disposition": f'attachment; filename="{export_filename(exported_at)}"'
        },
    )
