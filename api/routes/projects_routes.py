"""Project endpoints."""

from typing import Annotated, Any

from fastapi import APIRouter, Body, Query
from starlette import status

from core.auth import UserId
from core.database import DbSession
from schemas import (
    Envelope,
    ErrorResponse,
    PaginatedEnvelope,
    ProjectDetail,
    ProjectListItem,
    ProjectWithRelations,
)
from services import project_service
from services.project_service import ProjectFilters

router = APIRouter(prefix="/api/projects", tags=["projects"])

ProjectPayload = Annotated[dict[str, Any], Body()]

_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post(
    "",
    response_model=Envelope[ProjectWithRelations],
    status_code=status.HTTP_201_CREATED,
    responses={**_ERRORS, 401: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_project(
    payload: ProjectPayload, user_id: UserId, db: DbSession
) -> Envelope[ProjectWithRelations]:
    """Create a project managed by the caller."""
    return await project_service.create_project(db, payload, user_id)


@router.get(
    "/user/{user_id}",
    response_model=PaginatedEnvelope[ProjectListItem],
    responses=_ERRORS,
)
async def list_user_projects(
    user_id: str,
    db: DbSession,
    project_status: Annotated[str | None, Query(alias="status")] = None,
    name: str | None = None,
    page: str | None = None,
    page_size: Annotated[str | None, Query(alias="pageSize")] = None,
) -> PaginatedEnvelope[ProjectListItem]:
    filters = ProjectFilters(
        status=project_status, name=name, page=page, page_size=page_size
    )
    return await project_service.get_projects_by_user(db, user_id, filters)


@router.get("/{project_id}", response_model=Envelope[ProjectDetail], responses=_ERRORS)
async def get_project(project_id: str, db: DbSession) -> Envelope[ProjectDetail]:
    return await project_service.get_project_details(db, project_id)


@router.put(
    "/{project_id}",
    response_model=Envelope[ProjectWithRelations],
    responses={**_ERRORS, 401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def update_project(
    project_id: str, payload: ProjectPayload, user_id: UserId, db: DbSession
) -> Envelope[ProjectWithRelations]:
    """Update a project. Only its manager may do so."""
    return await project_service.update_project(db, project_id, payload, user_id)


@router.post(
    "/projet/{projet_id}",
    response_model=Envelope[ProjectWithRelations],
    responses={**_ERRORS, 401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
async def update_project_legacy(
    projet_id: str, payload: ProjectPayload, user_id: UserId, db: DbSession
) -> Envelope[ProjectWithRelations]:
    """POST alias of PUT /{project_id} kept for existing clients."""
    return await project_service.update_project(db, projet_id, payload, user_id)
