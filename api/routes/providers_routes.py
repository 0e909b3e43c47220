"""Provider endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from core.auth import UserId
from core.database import DbSession
from schemas import (
    Envelope,
    ErrorResponse,
    PaginatedEnvelope,
    ProviderDetail,
    ProviderSchema,
)
from services import provider_service
from services.provider_service import ProviderFilters

router = APIRouter(
    prefix="/api/providers",
    tags=["providers"],
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)


@router.get("/providers", response_model=PaginatedEnvelope[ProviderSchema])
async def list_providers(
    user_id: UserId,
    db: DbSession,
    search: str | None = None,
    page: str | None = None,
    page_size: Annotated[str | None, Query(alias="pageSize")] = None,
) -> PaginatedEnvelope[ProviderSchema]:
    filters = ProviderFilters(search=search, page=page, page_size=page_size)
    return await provider_service.get_all_providers(db, filters)


@router.get("/providers/{provider_id}", response_model=Envelope[ProviderDetail])
async def get_provider(
    provider_id: str, user_id: UserId, db: DbSession
) -> Envelope[ProviderDetail]:
    return await provider_service.get_provider_details(db, provider_id)


@router.get(
    "/providers/{target_user_id}/organizations",
    response_model=Envelope[list[ProviderSchema]],
)
async def list_user_providers(
    target_user_id: str, user_id: UserId, db: DbSession
) -> Envelope[list[ProviderSchema]]:
    """Providers associated with the given user's organization."""
    return await provider_service.get_providers_by_user(db, target_user_id)
