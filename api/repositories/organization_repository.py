"""Organization repository for database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Organization


class OrganizationRepository:
    """Repository for Organization database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, organization_id: str) -> Organization | None:
        result = await self.db.execute(
            select(Organization).where(Organization.id == organization_id)
        )
        return result.scalar_one_or_none()

    async def exists(self, organization_id: str) -> bool:
        result = await self.db.execute(
            select(Organization.id).where(Organization.id == organization_id)
        )
        return result.scalar_one_or_none() is not None
