"""Dashboard endpoints.

Routes without a path user id act on the authenticated caller.
"""

from typing import Annotated

from fastapi import APIRouter, Query

from core.auth import UserId
from core.database import DbSession
from schemas import (
    DashboardData,
    Envelope,
    ErrorResponse,
    PaginatedEnvelope,
    ProjectListItem,
    RequestListItem,
    TaskWithProject,
    UserResponse,
)
from services import dashboard_service
from services.dashboard_service import TaskFilters
from services.project_service import ProjectFilters

router = APIRouter(
    prefix="/api/dashboard",
    tags=["dashboard"],
    responses={401: {"model": ErrorResponse}, 400: {"model": ErrorResponse}},
)

StatusParam = Annotated[str | None, Query(alias="status")]
PageSizeParam = Annotated[str | None, Query(alias="pageSize")]


@router.get("", response_model=Envelope[DashboardData])
async def get_my_dashboard(user_id: UserId, db: DbSession) -> Envelope[DashboardData]:
    return await dashboard_service.get_dashboard_data(db, user_id)


@router.get("/user/{target_user_id}", response_model=Envelope[DashboardData])
async def get_user_dashboard(
    target_user_id: str, user_id: UserId, db: DbSession
) -> Envelope[DashboardData]:
    return await dashboard_service.get_dashboard_data(db, target_user_id)


@router.get("/projects", response_model=PaginatedEnvelope[ProjectListItem])
async def get_my_projects(
    user_id: UserId,
    db: DbSession,
    project_status: StatusParam = None,
    name: str | None = None,
    page: str | None = None,
    page_size: PageSizeParam = None,
) -> PaginatedEnvelope[ProjectListItem]:
    filters = ProjectFilters(
        status=project_status, name=name, page=page, page_size=page_size
    )
    return await dashboard_service.get_projects_by_user(db, user_id, filters)


@router.get(
    "/projects/user/{target_user_id}",
    response_model=PaginatedEnvelope[ProjectListItem],
)
async def get_user_projects(
    target_user_id: str,
    user_id: UserId,
    db: DbSession,
    project_status: StatusParam = None,
    name: str | None = None,
    page: str | None = None,
    page_size: PageSizeParam = None,
) -> PaginatedEnvelope[ProjectListItem]:
    filters = ProjectFilters(
        status=project_status, name=name, page=page, page_size=page_size
    )
    return await dashboard_service.get_projects_by_user(db, target_user_id, filters)


@router.get("/tasks", response_model=PaginatedEnvelope[TaskWithProject])
async def get_my_tasks(
    user_id: UserId,
    db: DbSession,
    task_status: StatusParam = None,
    priority: str | None = None,
    page: str | None = None,
    page_size: PageSizeParam = None,
) -> PaginatedEnvelope[TaskWithProject]:
    filters = TaskFilters(
        status=task_status, priority=priority, page=page, page_size=page_size
    )
    return await dashboard_service.get_tasks_by_user(db, user_id, filters)


@router.get(
    "/requests/recent/{organization_id}",
    response_model=Envelope[list[RequestListItem]],
)
async def get_recent_requests(
    organization_id: str,
    user_id: UserId,
    db: DbSession,
    limit: str | None = None,
) -> Envelope[list[RequestListItem]]:
    return await dashboard_service.get_recent_requests(db, organization_id, limit)


@router.get("/users/organization", response_model=Envelope[list[UserResponse]])
async def get_my_organization_users(
    user_id: UserId, db: DbSession
) -> Envelope[list[UserResponse]]:
    return await dashboard_service.get_users_by_same_organization(db, user_id)


@router.get(
    "/users/organization/{target_user_id}",
    response_model=Envelope[list[UserResponse]],
)
async def get_organization_users(
    target_user_id: str, user_id: UserId, db: DbSession
) -> Envelope[list[UserResponse]]:
    return await dashboard_service.get_users_by_same_organization(db, target_user_id)
