"""Request endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query
from starlette import status

from core.auth import UserId
from core.database import DbSession
from schemas import (
    Envelope,
    ErrorResponse,
    PaginatedEnvelope,
    RequestCreate,
    RequestDetail,
    RequestListItem,
)
from services import request_service
from services.request_service import RequestFilters

router = APIRouter(
    prefix="/api/requests",
    tags=["requests"],
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
    },
)

StatusParam = Annotated[str | None, Query(alias="status")]
PageSizeParam = Annotated[str | None, Query(alias="pageSize")]


@router.get("", response_model=PaginatedEnvelope[RequestListItem])
async def list_requests(
    user_id: UserId,
    db: DbSession,
    request_status: StatusParam = None,
    page: str | None = None,
    page_size: PageSizeParam = None,
) -> PaginatedEnvelope[RequestListItem]:
    filters = RequestFilters(status=request_status, page=page, page_size=page_size)
    return await request_service.get_all_requests(db, filters)


@router.post(
    "",
    response_model=Envelope[RequestDetail],
    status_code=status.HTTP_201_CREATED,
)
async def create_request(
    payload: RequestCreate, user_id: UserId, db: DbSession
) -> Envelope[RequestDetail]:
    """Raise a request for the caller's organization."""
    return await request_service.create_request(db, payload, user_id)


@router.get(
    "/organization/{organization_id}",
    response_model=PaginatedEnvelope[RequestListItem],
)
async def list_organization_requests(
    organization_id: str,
    user_id: UserId,
    db: DbSession,
    request_status: StatusParam = None,
    page: str | None = None,
    page_size: PageSizeParam = None,
) -> PaginatedEnvelope[RequestListItem]:
    filters = RequestFilters(status=request_status, page=page, page_size=page_size)
    return await request_service.get_requests_by_organization(
        db, organization_id, filters
    )


@router.get("/{request_id}", response_model=Envelope[RequestDetail])
async def get_request(
    request_id: str, user_id: UserId, db: DbSession
) -> Envelope[RequestDetail]:
    return await request_service.get_request_by_id(db, request_id)
