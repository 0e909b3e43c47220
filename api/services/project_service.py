"""Project service: listing, details, creation and updates.

Rules enforced here:
- Only the project manager may update a project when a caller id is given.
- Updates accept a fixed whitelist of fields (camelCase or snake_case keys);
  unknown keys and null values are dropped.
- On update, the effective end date must be strictly after the start date.
  Creation requires both dates to parse but does not check their order.
"""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Any, Self

from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from core import get_logger
from models import ProjectListStatus, ProjectUpdateStatus, RiskLevel, utcnow
from repositories.location_repository import LocationRepository
from repositories.project_repository import ProjectOwnership, ProjectRepository
from schemas import (
    Envelope,
    PaginatedEnvelope,
    ProjectDetail,
    ProjectListItem,
    ProjectWithRelations,
)
from services.errors import ValidationError, service_boundary
from services.pagination import page_meta, resolve_page
from services.validation import (
    as_utc,
    parse_date,
    require_choice,
    require_id,
    require_non_empty,
    require_range,
)

logger = get_logger(__name__)

DUPLICATE_NAME_MESSAGE = "A project with this name already exists"
NOT_FOUND_MESSAGE = "Project not found"

_DATE_FIELDS = (("start_date", "start date"), ("end_date", "end date"))


@dataclass(frozen=True, slots=True)
class ProjectChanges:
    """Whitelisted project fields taken from a client payload."""

    name: Any = None
    description: Any = None
    objective: Any = None
    scope: Any = None
    geographical_area: Any = None
    client: Any = None
    start_date: Any = None
    end_date: Any = None
    status: Any = None
    budget: Any = None
    progress: Any = None
    contract: Any = None
    funder: Any = None
    government_entity: Any = None
    risk_level: Any = None
    location_id: Any = None
    parent_project_id: Any = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> Self:
        """Pick whitelisted keys; camelCase wins when both spellings are present."""
        values = {}
        for field in fields(cls):
            camel = to_camel(field.name)
            values[field.name] = (
                payload[camel] if payload.get(camel) is not None else payload.get(field.name)
            )
        return cls(**values)

    def provided(self) -> dict[str, Any]:
        """Column -> value for every non-null field."""
        return {
            field.name: getattr(self, field.name)
            for field in fields(self)
            if getattr(self, field.name) is not None
        }


@dataclass(frozen=True, slots=True)
class ProjectFilters:
    status: str | None = None
    name: str | None = None
    page: Any = None
    page_size: Any = None


def _as_payload(data: object) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise ValidationError("Project data must be an object")
    return data


def _parse_dates(values: dict[str, Any]) -> None:
    for key, label in _DATE_FIELDS:
        if key in values:
            values[key] = parse_date(values[key], f"Invalid {label} format")


async def _validate_changes(
    db: AsyncSession,
    project_id: str,
    changes: dict[str, Any],
    current: ProjectOwnership,
) -> dict[str, Any]:
    """Type-check and normalize every provided field, returning column values."""
    values = dict(changes)

    if "name" in values:
        values["name"] = require_non_empty(
            values["name"], "Project name must be a non-empty string"
        )
    if "status" in values:
        values["status"] = require_choice(values["status"], ProjectUpdateStatus, "status")
    if "budget" in values:
        values["budget"] = require_range(
            values["budget"], "Budget must be a non-negative number", minimum=0
        )
    if "progress" in values:
        values["progress"] = require_range(
            values["progress"],
            "Progress must be a number between 0 and 100",
            minimum=0,
            maximum=100,
        )
    if "risk_level" in values:
        values["risk_level"] = require_choice(values["risk_level"], RiskLevel, "risk level")

    _parse_dates(values)
    if "start_date" in values or "end_date" in values:
        # A single supplied date is compared against the stored counterpart
        start = values.get("start_date", current.start_date)
        end = values.get("end_date", current.end_date)
        if start is not None and end is not None and as_utc(end) <= as_utc(start):
            raise ValidationError("End date must be after start date")

    if "parent_project_id" in values:
        parent_id = require_id(values["parent_project_id"], "Invalid parent project ID")
        if parent_id == project_id:
            raise ValidationError("A project cannot be its own parent")
        if not await ProjectRepository(db).exists(parent_id):
            raise ValidationError("Parent project not found", code=404)
        values["parent_project_id"] = parent_id

    if "location_id" in values:
        location_id = require_id(values["location_id"], "Invalid location ID")
        if not await LocationRepository(db).exists(location_id):
            raise ValidationError("Location not found", code=404)
        values["location_id"] = location_id

    return values


@service_boundary("project.details", "Failed to fetch project details")
async def get_project_details(
    db: AsyncSession, project_id: str
) -> Envelope[ProjectDetail]:
    """Full project graph for a single project."""
    project_id = require_id(project_id, "Project ID is required")

    project = await ProjectRepository(db).get_with_details(project_id)
    if project is None:
        raise ValidationError(NOT_FOUND_MESSAGE, code=404)

    return Envelope[ProjectDetail](
        data=ProjectDetail.model_validate(project),
        message="Project details retrieved successfully",
    )


@service_boundary("project.list_by_user", "Failed to fetch projects")
async def get_projects_by_user(
    db: AsyncSession, user_id: str, filters: ProjectFilters | None = None
) -> PaginatedEnvelope[ProjectListItem]:
    """Projects managed by a user, newest first.

    All filters are validated before the database is touched.
    """
    user_id = require_id(user_id, "User ID is required")
    filters = filters or ProjectFilters()
    status = (
        require_choice(filters.status, ProjectListStatus, "status")
        if filters.status
        else None
    )
    name = filters.name.strip() if filters.name else None
    page = resolve_page(filters.page, filters.page_size)

    projects, total = await ProjectRepository(db).find_by_manager(
        user_id,
        status=status,
        search=name or None,
        offset=page.offset,
        limit=page.per_page,
    )
    items = [ProjectListItem.model_validate(p) for p in projects]
    return PaginatedEnvelope[ProjectListItem].build(
        items,
        page_meta(page, total, len(items)),
        "Projects retrieved successfully",
    )


@service_boundary(
    "project.update",
    "Failed to update project",
    duplicate_message=DUPLICATE_NAME_MESSAGE,
    missing_message=NOT_FOUND_MESSAGE,
)
async def update_project(
    db: AsyncSession,
    project_id: str,
    update_data: Mapping[str, Any] | None,
    user_id: str | None = None,
) -> Envelope[ProjectWithRelations]:
    """Apply whitelisted changes to a project.

    When ``user_id`` is given it must match the project manager.
    """
    project_id = require_id(project_id, "Project ID is required")
    payload = _as_payload(update_data)

    repo = ProjectRepository(db)
    current = await repo.get_ownership(project_id)
    if current is None:
        raise ValidationError(NOT_FOUND_MESSAGE, code=404)
    if user_id is not None:
        user_id = require_id(user_id, "Invalid user ID")
        if user_id != current.project_manager_id:
            raise ValidationError(
                "You are not authorized to update this project", code=403
            )

    changes = ProjectChanges.from_payload(payload).provided()
    values = await _validate_changes(db, project_id, changes, current)
    if not values:
        raise ValidationError("No valid fields to update")

    values["updated_at"] = utcnow()
    project = await repo.update_fields(project_id, values)

    logger.info(
        "project.updated",
        project_id=project_id,
        fields=sorted(k for k in values if k != "updated_at"),
    )
    return Envelope[ProjectWithRelations](
        data=ProjectWithRelations.model_validate(project),
        message="Project updated successfully",
    )


@service_boundary(
    "project.create",
    "Failed to create project",
    duplicate_message=DUPLICATE_NAME_MESSAGE,
)
async def create_project(
    db: AsyncSession,
    data: Mapping[str, Any] | None,
    project_manager_id: str,
) -> Envelope[ProjectWithRelations]:
    """Create a project managed by ``project_manager_id``.

    Both dates are required and must parse; their order is not checked here.
    """
    manager_id = require_id(project_manager_id, "Project manager ID is required")
    values = ProjectChanges.from_payload(_as_payload(data)).provided()
    for key, label in _DATE_FIELDS:
        values[key] = parse_date(values.get(key), f"Invalid {label} format")

    now = utcnow()
    values.update(project_manager_id=manager_id, created_at=now, updated_at=now)
    project = await ProjectRepository(db).create(values)

    logger.info("project.created", project_id=project.id, manager_id=manager_id)
    return Envelope[ProjectWithRelations](
        data=ProjectWithRelations.model_validate(project),
        message="Project created successfully",
    )
