"""Dashboard service.

This module provides dashboard data by combining:
- Projects managed by the user
- Tasks assigned to the user
- Members and requests of the user's organization
"""

from dataclasses import dataclass
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from models import RequestStatus, TaskPriority, TaskStatus, utcnow
from repositories.organization_repository import OrganizationRepository
from repositories.project_repository import ProjectRepository
from repositories.request_repository import RequestRepository
from repositories.task_repository import TaskRepository
from repositories.user_repository import UserRepository
from schemas import (
    DashboardData,
    DashboardStats,
    Envelope,
    PaginatedEnvelope,
    ProjectBase,
    ProjectListItem,
    RequestListItem,
    TaskWithProject,
    UserResponse,
)
from services import project_service, users_service
from services.errors import ValidationError, service_boundary
from services.pagination import MAX_PAGE_SIZE, page_meta, resolve_page
from services.project_service import ProjectFilters
from services.validation import coerce_int, require_choice, require_id

RECENT_PROJECTS_LIMIT = 5
UPCOMING_TASKS_LIMIT = 10
RECENT_REQUESTS_LIMIT = 5
DEFAULT_RECENT_REQUESTS = 10


@dataclass(frozen=True, slots=True)
class TaskFilters:
    status: str | None = None
    priority: str | None = None
    page: Any = None
    page_size: Any = None


@service_boundary("dashboard.data", "Failed to fetch dashboard data")
async def get_dashboard_data(db: AsyncSession, user_id: str) -> Envelope[DashboardData]:
    """Everything the dashboard home page shows for one user."""
    user_id = require_id(user_id, "User ID is required")

    user_repo = UserRepository(db)
    user = await user_repo.get_by_id(user_id)
    if user is None:
        raise ValidationError("User not found", code=404)

    project_repo = ProjectRepository(db)
    task_repo = TaskRepository(db)
    request_repo = RequestRepository(db)

    projects_by_status = await project_repo.count_by_status(user_id)
    task_counts = await task_repo.counts_for_assignee(user_id, utcnow())
    projects = await project_repo.recent_by_manager(user_id, RECENT_PROJECTS_LIMIT)
    tasks = await task_repo.upcoming_for_assignee(user_id, UPCOMING_TASKS_LIMIT)

    members = []
    requests = []
    pending_requests = 0
    if user.organization_id:
        members = await user_repo.list_by_organization(
            user.organization_id, exclude_user_id=user.id
        )
        requests = await request_repo.recent_by_organization(
            user.organization_id, RECENT_REQUESTS_LIMIT
        )
        pending_requests = await request_repo.count_by_status(
            user.organization_id, RequestStatus.PENDING.value
        )

    stats = DashboardStats(
        total_projects=sum(projects_by_status.values()),
        projects_by_status=projects_by_status,
        total_tasks=task_counts.total,
        pending_tasks=task_counts.pending,
        completed_tasks=task_counts.completed,
        overdue_tasks=task_counts.overdue,
        pending_requests=pending_requests,
    )
    return Envelope[DashboardData](
        data=DashboardData(
            user=UserResponse.model_validate(user),
            stats=stats,
            projects=[ProjectBase.model_validate(p) for p in projects],
            tasks=[TaskWithProject.model_validate(t) for t in tasks],
            users=[UserResponse.model_validate(m) for m in members],
            requests=[RequestListItem.model_validate(r) for r in requests],
        ),
        message="Dashboard data retrieved successfully",
    )


async def get_projects_by_user(
    db: AsyncSession, user_id: str, filters: ProjectFilters | None = None
) -> PaginatedEnvelope[ProjectListItem]:
    """Dashboard project listing; same rules as the project service."""
    return await project_service.get_projects_by_user(db, user_id, filters)


@service_boundary("dashboard.tasks", "Failed to fetch tasks")
async def get_tasks_by_user(
    db: AsyncSession, user_id: str, filters: TaskFilters | None = None
) -> PaginatedEnvelope[TaskWithProject]:
    """Tasks assigned to a user, soonest due first."""
    user_id = require_id(user_id, "User ID is required")
    filters = filters or TaskFilters()
    status = require_choice(filters.status, TaskStatus, "status") if filters.status else None
    priority = (
        require_choice(filters.priority, TaskPriority, "priority")
        if filters.priority
        else None
    )
    page = resolve_page(filters.page, filters.page_size)

    tasks, total = await TaskRepository(db).find_by_assignee(
        user_id,
        status=status,
        priority=priority,
        offset=page.offset,
        limit=page.per_page,
    )
    items = [TaskWithProject.model_validate(t) for t in tasks]
    return PaginatedEnvelope[TaskWithProject].build(
        items,
        page_meta(page, total, len(items)),
        "Tasks retrieved successfully",
    )


@service_boundary("dashboard.recent_requests", "Failed to fetch recent requests")
async def get_recent_requests(
    db: AsyncSession, organization_id: str, limit: object = DEFAULT_RECENT_REQUESTS
) -> Envelope[list[RequestListItem]]:
    """Newest requests of an organization; ``limit`` is clamped to [1, 50]."""
    organization_id = require_id(organization_id, "Organization ID is required")
    size = coerce_int(
        DEFAULT_RECENT_REQUESTS if limit is None else limit, "Limit must be an integer."
    )
    size = min(MAX_PAGE_SIZE, max(1, size))

    if not await OrganizationRepository(db).exists(organization_id):
        raise ValidationError("Organization not found", code=404)

    requests = await RequestRepository(db).recent_by_organization(organization_id, size)
    return Envelope[list[RequestListItem]](
        data=[RequestListItem.model_validate(r) for r in requests],
        message="Recent requests retrieved successfully",
    )


async def get_users_by_same_organization(
    db: AsyncSession, user_id: str
) -> Envelope[list[UserResponse]]:
    return await users_service.get_users_by_same_organization(db, user_id)
