"""Health check endpoints."""

from fastapi import APIRouter, HTTPException, Request
from starlette import status

from core.database import check_db_connection
from core.logger import get_logger
from schemas import HealthResponse

logger = get_logger(__name__)

router = APIRouter(tags=["health"])

SERVICE_NAME = "project-ops-api"


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness check. Does not touch the database."""
    return HealthResponse(status="healthy", service=SERVICE_NAME)


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"description": "Database unavailable"}},
)
async def ready(request: Request) -> HealthResponse:
    """Readiness check: returns 200 only when the database is reachable."""
    try:
        await check_db_connection(request.app.state.engine)
    except Exception as e:
        logger.warning("health.ready.failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        ) from e
    return HealthResponse(status="ready", service=SERVICE_NAME)
