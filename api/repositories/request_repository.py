"""Request repository for database operations."""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models import Request
from repositories.utils import count_rows, log_slow_query


class RequestRepository:
    """Repository for Request database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @log_slow_query("request.find")
    async def find(
        self,
        *,
        organization_id: str | None = None,
        status: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[Request], int]:
        """Page of requests (newest first) with requester loaded, plus the total."""
        stmt = select(Request)
        if organization_id:
            stmt = stmt.where(Request.organization_id == organization_id)
        if status:
            stmt = stmt.where(Request.status == status)
        total = await count_rows(self.db, stmt)
        result = await self.db.execute(
            stmt.options(selectinload(Request.user))
            .order_by(Request.created_at.desc(), Request.id)
            .offset(offset)
            .limit(limit)
        )
        return list(result.scalars().all()), total

    @log_slow_query("request.recent_by_organization")
    async def recent_by_organization(
        self, organization_id: str, limit: int
    ) -> list[Request]:
        result = await self.db.execute(
            select(Request)
            .where(Request.organization_id == organization_id)
            .options(selectinload(Request.user))
            .order_by(Request.created_at.desc(), Request.id)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def count_by_status(self, organization_id: str, status: str) -> int:
        result = await self.db.execute(
            select(func.count(Request.id)).where(
                Request.organization_id == organization_id,
                Request.status == status,
            )
        )
        return result.scalar_one()

    @log_slow_query("request.get_with_details")
    async def get_with_details(self, request_id: str) -> Request | None:
        result = await self.db.execute(
            select(Request)
            .where(Request.id == request_id)
            .options(
                selectinload(Request.user),
                selectinload(Request.organization),
                selectinload(Request.project),
                selectinload(Request.tasks),
            )
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @log_slow_query("request.create")
    async def create(
        self,
        *,
        title: str,
        description: str | None,
        status: str,
        user_id: str,
        organization_id: str,
        project_id: str | None,
    ) -> Request:
        """Insert a request. Does NOT commit."""
        request = Request(
            title=title,
            description=description,
            status=status,
            user_id=user_id,
            organization_id=organization_id,
            project_id=project_id,
        )
        self.db.add(request)
        await self.db.flush()
        return request
