"""Health check endpoint."""

from datetime import datetime, timezone

from fastapi import APIRouter

from studytrack import __version__
from studytrack.config.app_config import load_app_config
from studytrack.web.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Check API health status."""
    return HealthResponse(
        status="ok",
        version=__version__,
        backend=load_app_config().backend.provider,
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
