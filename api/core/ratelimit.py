"""Rate limiting configuration using slowapi.

Counters live in RATELIMIT_STORAGE_URI. The memory:// default keeps them
per process, so a deployment with several workers needs a shared store
such as redis://host:port/db.
"""

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from core.config import get_settings
from core.logger import get_logger

logger = get_logger(__name__)

settings = get_settings()

if (
    settings.environment != "development"
    and settings.ratelimit_storage_uri == "memory://"
):
    logger.warning(
        "ratelimit.memory_storage",
        environment=settings.environment,
        hint="Set RATELIMIT_STORAGE_URI to a Redis URL for distributed rate limiting",
    )


def _get_request_identifier(request: Request) -> str:
    """
    Get a unique identifier for rate limiting.

    Uses authenticated user ID if available, otherwise falls back to IP address.

    NOTE: user_id is only set once the auth dependency has run. Login and
    registration are unauthenticated, so they are always limited per IP.
    """
    if hasattr(request.state, "user_id") and request.state.user_id:
        return f"user:{request.state.user_id}"

    return get_remote_address(request)


_using_redis = settings.ratelimit_storage_uri.startswith("redis://")

limiter = Limiter(
    key_func=_get_request_identifier,
    default_limits=["100/minute"],
    storage_uri=settings.ratelimit_storage_uri,
    # Fall back to memory when Redis is temporarily unavailable
    in_memory_fallback_enabled=_using_redis,
    key_prefix="projectops:",
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Render rate limit errors with the standard error envelope."""
    logger.warning(
        "ratelimit.exceeded",
        identifier=_get_request_identifier(request),
        limit=exc.detail,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=429,
        content={"message": "Rate limit exceeded. Please slow down.", "code": 429},
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )


AUTH_LIMIT = "20/minute"
