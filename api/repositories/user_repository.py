"""User repository for database operations."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from models import User
from repositories.utils import log_slow_query


class UserRepository:
    """Repository for User database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: str) -> User | None:
        """Get a user by their ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        """Get a user by email.

        Expects email to be pre-normalized (lowercase) by service layer.
        """
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @log_slow_query("user.list_by_organization")
    async def list_by_organization(
        self, organization_id: str, *, exclude_user_id: str | None = None
    ) -> list[User]:
        """Members of an organization ordered by name."""
        stmt = select(User).where(User.organization_id == organization_id)
        if exclude_user_id:
            stmt = stmt.where(User.id != exclude_user_id)
        result = await self.db.execute(stmt.order_by(User.name, User.id))
        return list(result.scalars().all())

    async def create(
        self,
        *,
        name: str,
        email: str,
        password_hash: str,
        role: str = "USER",
        avatar: str | None = None,
        organization_id: str | None = None,
    ) -> User:
        """Create a new user.

        Does NOT commit. Flushes so a duplicate email surfaces as
        IntegrityError here rather than at commit time.
        """
        user = User(
            name=name,
            email=email,
            password_hash=password_hash,
            role=role,
            avatar=avatar,
            organization_id=organization_id,
        )
        self.db.add(user)
        await self.db.flush()
        return user
