"""Provider repository for database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from models import Provider, provider_organizations
from repositories.utils import count_rows, log_slow_query


class ProviderRepository:
    """Repository for Provider database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @log_slow_query("provider.find")
    async def find(
        self, *, search: str | None = None, offset: int = 0, limit: int = 20
    ) -> tuple[list[Provider], int]:
        stmt = select(Provider)
        if search:
            stmt = stmt.where(Provider.name.ilike(f"%{search}%"))
        total = await count_rows(self.db, stmt)
        result = await self.db.execute(
            stmt.order_by(Provider.name, Provider.id).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    @log_slow_query("provider.get_with_details")
    async def get_with_details(self, provider_id: str) -> Provider | None:
        result = await self.db.execute(
            select(Provider)
            .where(Provider.id == provider_id)
            .options(
                selectinload(Provider.user),
                selectinload(Provider.organizations),
                selectinload(Provider.contracts),
            )
        )
        return result.scalar_one_or_none()

    @log_slow_query("provider.list_by_organization")
    async def list_by_organization(self, organization_id: str) -> list[Provider]:
        """Providers associated with an organization, ordered by name."""
        result = await self.db.execute(
            select(Provider)
            .join(
                provider_organizations,
                provider_organizations.c.provider_id == Provider.id,
            )
            .where(provider_organizations.c.organization_id == organization_id)
            .order_by(Provider.name, Provider.id)
        )
        return list(result.scalars().all())
