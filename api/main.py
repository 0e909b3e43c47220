"""FastAPI application for the Project Ops API."""

import asyncio
from contextlib import asynccontextmanager

import fastapi
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.config import get_settings
from core.database import create_engine, create_session_maker, dispose_engine, init_db
from core.logger import (
    bind_contextvars,
    clear_contextvars,
    configure_logging,
    get_logger,
)
from core.ratelimit import limiter, rate_limit_exceeded_handler
from routes import (
    dashboard_router,
    health_router,
    inventory_router,
    projects_router,
    providers_router,
    requests_router,
    users_router,
)
from services.errors import DatabaseError, ValidationError

configure_logging()
logger = get_logger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content={"message": message, "code": status_code}
    )


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Client-caused service failures map to their 4xx code."""
    if not isinstance(exc, ValidationError):
        return _error(500, "Unexpected error")
    logger.info(
        "request.rejected",
        path=request.url.path,
        method=request.method,
        status_code=exc.code,
        reason=exc.message,
    )
    return _error(exc.code, exc.message)


async def database_error_handler(request: Request, exc: Exception) -> JSONResponse:
    # Already logged with traceback at the service boundary
    message = exc.message if isinstance(exc, DatabaseError) else "Unexpected error"
    return _error(500, message)


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, StarletteHTTPException):
        return _error(500, "Unexpected error")
    response = _error(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def request_validation_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handler for malformed request bodies and parameters."""
    if not isinstance(exc, RequestValidationError):
        return _error(500, "Unexpected error")

    logger.warning(
        "request.validation_error",
        path=request.url.path,
        method=request.method,
        error_count=len(exc.errors()),
    )
    return JSONResponse(
        status_code=422,
        content={
            "message": "Invalid request",
            "code": 422,
            "errors": _jsonable_errors(exc),
        },
    )


def _jsonable_errors(exc: RequestValidationError) -> list[dict]:
    return [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler for unhandled exceptions."""
    logger.exception(
        "unhandled.exception",
        exc_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )
    return _error(500, "An unexpected error occurred. Please try again.")


@asynccontextmanager
async def lifespan(app: fastapi.FastAPI):
    """Create DB engine at startup, dispose on shutdown."""
    app.state.engine = create_engine()
    app.state.session_maker = create_session_maker(app.state.engine)

    try:
        async with asyncio.timeout(60):
            await init_db(app.state.engine)
        logger.info("init.complete")
    except TimeoutError:
        logger.error("init.timeout", hint="Startup hung, check DB connectivity")
        raise RuntimeError("Application startup timed out")
    except Exception as e:
        logger.error("init.failed", error=str(e), exc_info=True)
        raise

    try:
        yield
    finally:
        await dispose_engine(app.state.engine)


def create_app() -> fastapi.FastAPI:
    settings = get_settings()
    docs_enabled = settings.enable_docs or settings.debug

    application = fastapi.FastAPI(
        title="Project Ops API",
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )

    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    application.add_exception_handler(ValidationError, validation_error_handler)
    application.add_exception_handler(DatabaseError, database_error_handler)
    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.add_exception_handler(
        RequestValidationError, request_validation_exception_handler
    )
    application.add_exception_handler(Exception, global_exception_handler)

    application.add_middleware(SlowAPIMiddleware)

    @application.middleware("http")
    async def bind_request_context(request: Request, call_next):
        # Context is per request; user_id is added later by the auth dependency
        clear_contextvars()
        bind_contextvars(method=request.method, path=request.url.path)
        return await call_next(request)

    if settings.debug:
        application.add_middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "OPTIONS"],
            allow_headers=["Authorization", "Content-Type"],
            max_age=600,
        )

    application.include_router(health_router)
    application.include_router(users_router)
    application.include_router(dashboard_router)
    application.include_router(projects_router)
    application.include_router(providers_router)
    application.include_router(requests_router)
    application.include_router(inventory_router)
    return application


app = create_app()
