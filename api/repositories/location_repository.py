"""Location repository for database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import Location


class LocationRepository:
    """Repository for Location database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, location_id: str) -> Location | None:
        result = await self.db.execute(
            select(Location).where(Location.id == location_id)
        )
        return result.scalar_one_or_none()

    async def exists(self, location_id: str) -> bool:
        result = await self.db.execute(
            select(Location.id).where(Location.id == location_id)
        )
        return result.scalar_one_or_none() is not None
