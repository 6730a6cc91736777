"""Server-side hooks called by the hosted auth service."""

import structlog
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from studytrack.backend.base import Backend, BackendError
from studytrack.backend.factory import create_service_backend
from studytrack.backend.hooks import provision_user
from studytrack.config.app_config import ConfigError, load_app_config
from studytrack.web.deps import get_backend
from studytrack.web.schemas import MessageResponse, ProvisionRequest

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/hooks", tags=["hooks"])


def _service_backend() -> tuple[Backend, bool]:
    """Backend with service-level access, and whether it must be closed."""
    config = load_app_config().backend
    if config.provider == "supabase":
        return create_service_backend(config), True
    return get_backend(), False


@router.post("/handle-new-user", response_model=MessageResponse)
async def handle_new_user(request: ProvisionRequest) -> JSONResponse:
    """Provision profile and default settings for a newly created auth user.

    Returns 200 with a message, or 400 with ``{"error": ...}``.
    """
    backend = None
    owned = False
    try:
        backend, owned = _service_backend()
        result = await provision_user(backend, request.record)
    except (BackendError, ConfigError) as e:
        logger.error("provision_hook_failed", error=str(e))
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(e)})
    finally:
        if owned and backend is not None:
            await backend.aclose()

    return JSONResponse(status_code=status.HTTP_200_OK, content=result)
