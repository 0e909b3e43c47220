"""Provider service."""

from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from repositories.provider_repository import ProviderRepository
from repositories.user_repository import UserRepository
from schemas import Envelope, PaginatedEnvelope, ProviderDetail, ProviderSchema
from services.errors import ValidationError, service_boundary
from services.pagination import page_meta, resolve_page
from services.validation import require_id


@dataclass(frozen=True, slots=True)
class ProviderFilters:
    search: str | None = None
    page: Any = None
    page_size: Any = None


@service_boundary("provider.list", "Failed to fetch providers")
async def get_all_providers(
    db: AsyncSession, filters: ProviderFilters | None = None
) -> PaginatedEnvelope[ProviderSchema]:
    filters = filters or ProviderFilters()
    page = resolve_page(filters.page, filters.page_size)
    search = filters.search.strip() if filters.search else None

    providers, total = await ProviderRepository(db).find(
        search=search or None, offset=page.offset, limit=page.per_page
    )
    items = [ProviderSchema.model_validate(p) for p in providers]
    return PaginatedEnvelope[ProviderSchema].build(
        items,
        page_meta(page, total, len(items)),
        "Providers retrieved successfully",
    )


@service_boundary("provider.details", "Failed to fetch provider")
async def get_provider_details(
    db: AsyncSession, provider_id: str
) -> Envelope[ProviderDetail]:
    provider_id = require_id(provider_id, "Provider ID is required")
    provider = await ProviderRepository(db).get_with_details(provider_id)
    if provider is None:
        raise ValidationError("Provider not found", code=404)
    return Envelope[ProviderDetail](
        data=ProviderDetail.model_validate(provider),
        message="Provider retrieved successfully",
    )


@service_boundary("provider.list_by_user", "Failed to fetch providers")
async def get_providers_by_user(
    db: AsyncSession, user_id: str
) -> Envelope[list[ProviderSchema]]:
    """Providers working with the user's organization.

    A user without an organization gets an empty list.
    """
    user_id = require_id(user_id, "User ID is required")
    user = await UserRepository(db).get_by_id(user_id)
    if user is None:
        raise ValidationError("User not found", code=404)

    providers = []
    if user.organization_id:
        providers = await ProviderRepository(db).list_by_organization(
            user.organization_id
        )
    return Envelope[list[ProviderSchema]](
        data=[ProviderSchema.model_validate(p) for p in providers],
        message="Providers retrieved successfully",
    )
