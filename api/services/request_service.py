"""Request service: listing, lookup and creation of organization requests."""

from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from core import get_logger
from models import RequestStatus
from repositories.organization_repository import OrganizationRepository
from repositories.project_repository import ProjectRepository
from repositories.request_repository import RequestRepository
from repositories.user_repository import UserRepository
from schemas import (
    Envelope,
    PaginatedEnvelope,
    RequestCreate,
    RequestDetail,
    RequestListItem,
)
from services.errors import ValidationError, service_boundary
from services.pagination import page_meta, resolve_page
from services.validation import require_choice, require_id, require_non_empty

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RequestFilters:
    status: str | None = None
    page: Any = None
    page_size: Any = None


async def _list_requests(
    db: AsyncSession,
    filters: RequestFilters,
    *,
    organization_id: str | None = None,
) -> PaginatedEnvelope[RequestListItem]:
    status = (
        require_choice(filters.status, RequestStatus, "status")
        if filters.status
        else None
    )
    page = resolve_page(filters.page, filters.page_size)

    requests, total = await RequestRepository(db).find(
        organization_id=organization_id,
        status=status,
        offset=page.offset,
        limit=page.per_page,
    )
    items = [RequestListItem.model_validate(r) for r in requests]
    return PaginatedEnvelope[RequestListItem].build(
        items,
        page_meta(page, total, len(items)),
        "Requests retrieved successfully",
    )


@service_boundary("request.list", "Failed to fetch requests")
async def get_all_requests(
    db: AsyncSession, filters: RequestFilters | None = None
) -> PaginatedEnvelope[RequestListItem]:
    return await _list_requests(db, filters or RequestFilters())


@service_boundary("request.list_by_organization", "Failed to fetch organization requests")
async def get_requests_by_organization(
    db: AsyncSession, organization_id: str, filters: RequestFilters | None = None
) -> PaginatedEnvelope[RequestListItem]:
    organization_id = require_id(organization_id, "Organization ID is required")
    if not await OrganizationRepository(db).exists(organization_id):
        raise ValidationError("Organization not found", code=404)
    return await _list_requests(
        db, filters or RequestFilters(), organization_id=organization_id
    )


@service_boundary("request.details", "Failed to fetch request")
async def get_request_by_id(db: AsyncSession, request_id: str) -> Envelope[RequestDetail]:
    request_id = require_id(request_id, "Request ID is required")
    request = await RequestRepository(db).get_with_details(request_id)
    if request is None:
        raise ValidationError("Request not found", code=404)
    return Envelope[RequestDetail](
        data=RequestDetail.model_validate(request),
        message="Request retrieved successfully",
    )


@service_boundary("request.create", "Failed to create request")
async def create_request(
    db: AsyncSession, data: RequestCreate, user_id: str
) -> Envelope[RequestDetail]:
    """Raise a pending request on behalf of the requester's organization."""
    user_id = require_id(user_id, "User ID is required")
    title = require_non_empty(data.title, "Title is required")

    user = await UserRepository(db).get_by_id(user_id)
    if user is None:
        raise ValidationError("User not found", code=404)
    if not user.organization_id:
        raise ValidationError("User does not belong to an organization")

    project_id = None
    if data.project_id is not None:
        project_id = require_id(data.project_id, "Invalid project ID")
        if not await ProjectRepository(db).exists(project_id):
            raise ValidationError("Project not found", code=404)

    repo = RequestRepository(db)
    created = await repo.create(
        title=title,
        description=data.description,
        status=RequestStatus.PENDING.value,
        user_id=user.id,
        organization_id=user.organization_id,
        project_id=project_id,
    )
    request = await repo.get_with_details(created.id)

    logger.info(
        "request.created",
        request_id=created.id,
        organization_id=user.organization_id,
        project_id=project_id,
    )
    return Envelope[RequestDetail](
        data=RequestDetail.model_validate(request),
        message="Request created successfully",
    )
