"""Task repository for database operations."""

from datetime import datetime
from typing import NamedTuple

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models import Task, TaskStatus, User
from repositories.utils import count_rows, log_slow_query

OPEN_STATUSES = (TaskStatus.TODO.value, TaskStatus.IN_PROGRESS.value)


class TaskCounts(NamedTuple):
    total: int
    pending: int
    completed: int
    overdue: int


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @log_slow_query("task.find_by_assignee")
    async def find_by_assignee(
        self,
        user_id: str,
        *,
        status: str | None = None,
        priority: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Task], int]:
        """Page of tasks assigned to a user, soonest due first, plus the total."""
        stmt = select(Task).where(Task.assigned_to_id == user_id)
        if status:
            stmt = stmt.where(Task.status == status)
        if priority:
            stmt = stmt.where(Task.priority == priority)
        total = await count_rows(self.db, stmt)
        result = await self.db.execute(
            stmt.options(
                selectinload(Task.assigned_to),
                selectinload(Task.location),
                selectinload(Task.project),
            )
            # NULL due dates sort last on both SQLite and PostgreSQL
            .order_by(Task.due_date.is_(None), Task.due_date, Task.created_at)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    @log_slow_query("task.upcoming_for_assignee")
    async def upcoming_for_assignee(self, user_id: str, limit: int = 10) -> list[Task]:
        """Open tasks assigned to a user ordered by due date."""
        result = await self.db.execute(
            select(Task)
            .where(Task.assigned_to_id == user_id, Task.status.in_(OPEN_STATUSES))
            .options(
                selectinload(Task.assigned_to),
                selectinload(Task.location),
                selectinload(Task.project),
            )
            .order_by(Task.due_date.is_(None), Task.due_date, Task.created_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    @log_slow_query("task.counts_for_assignee")
    async def counts_for_assignee(self, user_id: str, now: datetime) -> TaskCounts:
        """Total, open, completed and overdue counts in one query."""
        is_open = Task.status.in_(OPEN_STATUSES)
        result = await self.db.execute(
            select(
                func.count(Task.id),
                func.sum(case((is_open, 1), else_=0)),
                func.sum(case((Task.status == TaskStatus.COMPLETED.value, 1), else_=0)),
                func.sum(case((is_open & (Task.due_date < now), 1), else_=0)),
            ).where(Task.assigned_to_id == user_id)
        )
        total, pending, completed, overdue = result.one()
        return TaskCounts(
            total=total or 0,
            pending=pending or 0,
            completed=completed or 0,
            overdue=overdue or 0,
        )

    @log_slow_query("task.open_requiring_equipment")
    async def open_requiring_equipment(
        self, organization_id: str, item_id: str
    ) -> list[Task]:
        """Open tasks of an organization's members that list the item as required.

        ``equipment_required`` is a JSON array, so membership is checked in
        Python after narrowing to open tasks that require anything at all.
        """
        result = await self.db.execute(
            select(Task)
            .join(User, Task.assigned_to_id == User.id)
            .where(
                User.organization_id == organization_id,
                Task.status.in_(OPEN_STATUSES),
                Task.equipment_required.is_not(None),
            )
            .order_by(Task.due_date.is_(None), Task.due_date, Task.created_at)
        )
        return [
            task
            for task in result.scalars().all()
            if isinstance(task.equipment_required, list)
            and item_id in task.equipment_required
        ]
