"""Project repository for database operations."""

from datetime import datetime
from typing import Any, NamedTuple

from sqlalchemy import Select, func, select, update
from sqlalchemy.exc import NoResultFound
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models import Project, Task
from repositories.utils import count_rows, log_slow_query


class ProjectOwnership(NamedTuple):
    """Fields an update needs to authorize and validate dates."""

    id: str
    project_manager_id: str
    start_date: datetime | None
    end_date: datetime | None


class ProjectRepository:
    """Repository for Project database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @log_slow_query("project.get_with_details")
    async def get_with_details(self, project_id: str) -> Project | None:
        """Get a project with its full relation graph eagerly loaded."""
        result = await self.db.execute(
            select(Project)
            .where(Project.id == project_id)
            .options(
                selectinload(Project.project_manager),
                selectinload(Project.supervisors),
                selectinload(Project.contractors),
                selectinload(Project.parent_project),
                selectinload(Project.sub_projects),
                selectinload(Project.location),
                selectinload(Project.tasks).selectinload(Task.assigned_to),
                selectinload(Project.tasks).selectinload(Task.location),
                selectinload(Project.documents),
                selectinload(Project.requests),
                selectinload(Project.kpis),
                selectinload(Project.timeline),
                selectinload(Project.budget_distributions),
                selectinload(Project.contracts),
                selectinload(Project.evaluations),
            )
        )
        return result.scalar_one_or_none()

    def _manager_query(
        self, manager_id: str, *, status: str | None, search: str | None
    ) -> Select:
        stmt = select(Project).where(Project.project_manager_id == manager_id)
        if status:
            stmt = stmt.where(Project.status == status)
        if search:
            stmt = stmt.where(Project.name.ilike(f"%{search}%"))
        return stmt

    @log_slow_query("project.find_by_manager")
    async def find_by_manager(
        self,
        manager_id: str,
        *,
        status: str | None = None,
        search: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Project], int]:
        """Page of projects managed by a user, newest first, plus the total."""
        stmt = self._manager_query(manager_id, status=status, search=search)
        total = await count_rows(self.db, stmt)
        result = await self.db.execute(
            stmt.options(
                selectinload(Project.project_manager),
                selectinload(Project.tasks).selectinload(Task.assigned_to),
                selectinload(Project.tasks).selectinload(Task.location),
                selectinload(Project.kpis),
            )
            .order_by(Project.created_at.desc(), Project.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    @log_slow_query("project.recent_by_manager")
    async def recent_by_manager(self, manager_id: str, limit: int = 5) -> list[Project]:
        result = await self.db.execute(
            select(Project)
            .where(Project.project_manager_id == manager_id)
            .order_by(Project.created_at.desc(), Project.id)
            .limit(limit)
        )
        return list(result.scalars().all())

    @log_slow_query("project.count_by_status")
    async def count_by_status(self, manager_id: str) -> dict[str, int]:
        """Managed project counts keyed by status."""
        result = await self.db.execute(
            select(Project.status, func.count(Project.id))
            .where(Project.project_manager_id == manager_id)
            .group_by(Project.status)
        )
        return {status: count for status, count in result.all()}

    @log_slow_query("project.get_ownership")
    async def get_ownership(self, project_id: str) -> ProjectOwnership | None:
        result = await self.db.execute(
            select(
                Project.id,
                Project.project_manager_id,
                Project.start_date,
                Project.end_date,
            ).where(Project.id == project_id)
        )
        row = result.one_or_none()
        return ProjectOwnership(*row) if row else None

    async def exists(self, project_id: str) -> bool:
        result = await self.db.execute(
            select(Project.id).where(Project.id == project_id)
        )
        return result.scalar_one_or_none() is not None

    @log_slow_query("project.update_fields")
    async def update_fields(self, project_id: str, values: dict[str, Any]) -> Project:
        """Write the given columns and return the refreshed project.

        Raises NoResultFound when the row disappeared since it was read.
        """
        result = await self.db.execute(
            update(Project)
            .where(Project.id == project_id)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NoResultFound(f"Project {project_id} not found")
        return await self.get_with_relations(project_id)

    @log_slow_query("project.create")
    async def create(self, values: dict[str, Any]) -> Project:
        """Insert a project and return it with its relations loaded."""
        project = Project(**values)
        self.db.add(project)
        await self.db.flush()
        return await self.get_with_relations(project.id)

    async def get_with_relations(self, project_id: str) -> Project:
        """Manager, location and parent loaded; always re-read from the database."""
        result = await self.db.execute(
            select(Project)
            .where(Project.id == project_id)
            .options(
                selectinload(Project.project_manager),
                selectinload(Project.location),
                selectinload(Project.parent_project),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one()
