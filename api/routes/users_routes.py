"""User endpoints: registration, login and organization members."""

from fastapi import APIRouter, Request
from starlette import status

from core.auth import UserId
from core.database import DbSession
from core.ratelimit import AUTH_LIMIT, limiter
from schemas import (
    Envelope,
    ErrorResponse,
    LoginRequest,
    LoginResult,
    RegisterRequest,
    UserResponse,
)
from services import users_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.post(
    "/register",
    response_model=Envelope[UserResponse],
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
@limiter.limit(AUTH_LIMIT)
async def register(
    request: Request, payload: RegisterRequest, db: DbSession
) -> Envelope[UserResponse]:
    return await users_service.register_user(db, payload)


@router.post(
    "/login",
    response_model=Envelope[LoginResult],
    responses={401: {"model": ErrorResponse}},
)
@limiter.limit(AUTH_LIMIT)
async def login(
    request: Request, payload: LoginRequest, db: DbSession
) -> Envelope[LoginResult]:
    """Exchange email and password for a bearer token."""
    return await users_service.login(db, payload.email, payload.password)


@router.get(
    "/organisation-users/{target_user_id}",
    response_model=Envelope[list[UserResponse]],
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_organization_users(
    target_user_id: str, user_id: UserId, db: DbSession
) -> Envelope[list[UserResponse]]:
    return await users_service.get_users_by_same_organization(db, target_user_id)
