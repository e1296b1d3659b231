"""
User Data Access Object.

WHY: The tenant context resolver only needs find-by-id and update on the
user record; keeping those here lets tests swap the store for a fake.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from propman.dao.base import BaseDAO
from propman.models.user import User


class UserDAO(BaseDAO[User]):
    """Data Access Object for User model."""

    def __init__(self, session: AsyncSession):
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Retrieve user by email address (case-insensitive).

        Args:
            email: User's email address

        Returns:
            User instance if found, None otherwise
        """
        result = await self.session.execute(
            select(User).where(func.lower(User.email) == email.lower())
        )
        return result.scalar_one_or_none()

    async def set_active_organization(self, user: User, organization_id: Optional[UUID]) -> User:
        """Persist the user's active organization."""
        user.active_organization_id = organization_id
        return await self.save(user)
