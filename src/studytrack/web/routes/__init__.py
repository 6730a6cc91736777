"""Route handlers for Web API."""

from studytrack.web.routes.analytics import router as analytics_router
from studytrack.web.routes.auth import router as auth_router
from studytrack.web.routes.health import router as health_router
from studytrack.web.routes.hooks import router as hooks_router
from studytrack.web.routes.sessions import router as sessions_router
from studytrack.web.routes.settings import router as settings_router
from studytrack.web.routes.subjects import router as subjects_router
from studytrack.web.routes.timer import router as timer_router

__all__ = [
    "analytics_router",
    "auth_router",
    "health_router",
    "hooks_router",
    "sessions_router",
    "settings_router",
    "subjects_router",
    "timer_router",
]
