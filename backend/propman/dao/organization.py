"""
Organization and membership Data Access Objects.

WHY: "Active membership" (is_active and not soft-deleted) is the only
membership that counts anywhere in the system. The predicate is defined
once here and every access decision goes through it.
"""

from typing import Any, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from propman.dao.base import BaseDAO
from propman.models.organization import Organization, OrganizationUser


def active_membership_clause() -> Any:
    return OrganizationUser.is_active.is_(True) & OrganizationUser.active_clause()


class OrganizationDAO(BaseDAO[Organization]):
    """Data Access Object for Organization model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Organization, session)

    async def get_owned_by(self, user_id: str) -> List[Organization]:
        return await self.get_all(Organization.owner_id == user_id)

    async def get_for_user(self, user_id: str) -> List[Organization]:
        """Organizations the user has an active membership in, by name."""
        result = await self.session.execute(
            select(Organization)
            .join(OrganizationUser, OrganizationUser.organization_id == Organization.id)
            .where(
                Organization.active_clause(),
                OrganizationUser.user_id == user_id,
                active_membership_clause(),
            )
            .order_by(Organization.name)
        )
        return list(result.scalars().all())


class OrganizationUserDAO(BaseDAO[OrganizationUser]):
    """Data Access Object for OrganizationUser (membership) model."""

    def __init__(self, session: AsyncSession):
        super().__init__(OrganizationUser, session)

    async def get_active_membership(
        self, user_id: str, organization_id: UUID
    ) -> Optional[OrganizationUser]:
        """
        Retrieve the user's membership only if it is active and not deleted.

        WHY: Revoked or soft-deleted memberships must never grant access.
        """
        result = await self.session.execute(
            select(OrganizationUser).where(
                OrganizationUser.user_id == user_id,
                OrganizationUser.organization_id == organization_id,
                active_membership_clause(),
            )
        )
        return result.scalar_one_or_none()

    async def get_membership(
        self, user_id: str, organization_id: UUID
    ) -> Optional[OrganizationUser]:
        """Retrieve the membership row regardless of state (for reactivation)."""
        result = await self.session.execute(
            select(OrganizationUser).where(
                OrganizationUser.user_id == user_id,
                OrganizationUser.organization_id == organization_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_active_for_user(self, user_id: str) -> List[OrganizationUser]:
        result = await self.session.execute(
            select(OrganizationUser)
            .join(Organization, Organization.id == OrganizationUser.organization_id)
            .where(
                OrganizationUser.user_id == user_id,
                active_membership_clause(),
                Organization.active_clause(),
            )
        )
        return list(result.scalars().all())

    async def get_active_for_organization(self, organization_id: UUID) -> List[OrganizationUser]:
        return await self.get_all(
            OrganizationUser.organization_id == organization_id,
            OrganizationUser.is_active.is_(True),
        )

    async def get_all_for_organization(self, organization_id: UUID) -> List[OrganizationUser]:
        return await self.get_all(
            OrganizationUser.organization_id == organization_id, include_deleted=True
        )

    async def count_active_members(
        self, organization_id: UUID, exclude_user_ids: Iterable[str] = ()
    ) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(OrganizationUser)
            .where(
                OrganizationUser.organization_id == organization_id,
                active_membership_clause(),
                OrganizationUser.user_id.not_in(list(exclude_user_ids)),
            )
        )
        return int(result.scalar_one())
