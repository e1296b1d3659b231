"""
Organization Service.

WHAT: Business logic for organizations and user memberships.

WHY: This is the membership/role store consumed by the tenant context
resolver and the authorization policy. It owns the rules around
memberships:
1. Only active, non-deleted memberships grant access
2. The owner's membership can't be revoked or demoted
3. Re-granting access reactivates the existing row
4. An optional per-organization user limit

HOW: Orchestrates OrganizationDAO and OrganizationUserDAO. Callers own
the transaction; this service only flushes.
"""

import logging
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from propman.core.config import Settings, settings as default_settings
from propman.core.exceptions import (
    BusinessRuleViolation,
    OrganizationUserLimitError,
    ValidationError,
)
from propman.dao.organization import OrganizationDAO, OrganizationUserDAO
from propman.dao.user import UserDAO
from propman.models.base import utcnow
from propman.models.organization import Organization, OrganizationRole, OrganizationUser
from propman.models.user import SYSTEM_USER_ID

logger = logging.getLogger(__name__)


class OrganizationService:
    """
    Service for organization and membership operations.

    HOW: Coordinates DAOs and enforces membership rules. Role lookups
    never raise for a missing membership; they return None.
    """

    def __init__(self, session: AsyncSession, settings: Optional[Settings] = None):
        """
        Initialize OrganizationService.

        Args:
            session: Async database session
            settings: Application settings (defaults to the process settings)
        """
        self.session = session
        self.settings = settings or default_settings
        self.organization_dao = OrganizationDAO(session)
        self.membership_dao = OrganizationUserDAO(session)
        self.user_dao = UserDAO(session)

    # =========================================================================
    # Organization CRUD
    # =========================================================================

    async def create_organization(
        self,
        owner_id: str,
        name: str,
        display_name: Optional[str] = None,
        state: Optional[str] = None,
    ) -> Organization:
        """
        Create an organization and its owner membership.

        WHY: A brand-new account has no active organization. Making the
        first organization active immediately means the owner can start
        creating data without an explicit switch.

        Args:
            owner_id: User who owns the new organization
            name: Organization name
            display_name: Name shown in the UI (defaults to name)
            state: Two-letter state code

        Returns:
            The created Organization
        """
        if not name or not name.strip():
            raise ValidationError("Organization name is required")

        now = utcnow()
        organization = await self.organization_dao.add(
            Organization(
                id=uuid4(),
                owner_id=owner_id,
                name=name.strip(),
                display_name=display_name or name.strip(),
                state=state,
                is_active=True,
                created_on=now,
                created_by=owner_id,
            )
        )
        await self.membership_dao.add(
            OrganizationUser(
                id=uuid4(),
                user_id=owner_id,
                organization_id=organization.id,
                role=OrganizationRole.OWNER,
                granted_by=owner_id,
                granted_on=now,
                is_active=True,
                created_on=now,
                created_by=owner_id,
            )
        )

        owner = await self.user_dao.get_by_id(owner_id)
        if owner is not None and owner.active_organization_id is None:
            await self.user_dao.set_active_organization(owner, organization.id)

        logger.info(f"Organization {organization.id} created by {owner_id}")
        return organization

    async def get_organization_by_id(self, organization_id: UUID) -> Optional[Organization]:
        return await self.organization_dao.get_by_id(organization_id)

    async def get_owned_organizations(self, user_id: str) -> List[Organization]:
        return await self.organization_dao.get_owned_by(user_id)

    async def get_user_organizations(self, user_id: str) -> List[OrganizationUser]:
        """Active memberships of a user (in non-deleted organizations)."""
        return await self.membership_dao.get_active_for_user(user_id)

    async def get_accessible_organizations(self, user_id: str) -> List[Organization]:
        return await self.organization_dao.get_for_user(user_id)

    async def delete_organization(self, organization_id: UUID, deleted_by: str) -> bool:
        """
        Soft-delete an organization and every membership in it.

        Returns:
            False if the organization doesn't exist
        """
        organization = await self.organization_dao.get_by_id(organization_id)
        if organization is None:
            return False

        now = utcnow()
        organization.is_deleted = True
        organization.is_active = False
        organization.last_modified_on = now
        organization.last_modified_by = deleted_by

        for membership in await self.membership_dao.get_all_for_organization(organization_id):
            membership.is_deleted = True
            membership.is_active = False
            membership.revoked_on = now
            membership.last_modified_on = now
            membership.last_modified_by = deleted_by

        await self.session.flush()
        logger.info(f"Organization {organization_id} deleted by {deleted_by}")
        return True

    # =========================================================================
    # Permission & Role Lookups
    # =========================================================================

    async def is_owner(self, user_id: str, organization_id: UUID) -> bool:
        organization = await self.organization_dao.get_by_id(organization_id)
        return organization is not None and organization.owner_id == user_id

    async def is_administrator(self, user_id: str, organization_id: UUID) -> bool:
        role = await self.get_user_role_for_organization(user_id, organization_id)
        return role == OrganizationRole.ADMINISTRATOR

    async def can_access_organization(self, user_id: str, organization_id: UUID) -> bool:
        membership = await self.membership_dao.get_active_membership(user_id, organization_id)
        return membership is not None

    async def get_user_role_for_organization(
        self, user_id: str, organization_id: UUID
    ) -> Optional[str]:
        membership = await self.membership_dao.get_active_membership(user_id, organization_id)
        return membership.role if membership else None

    async def is_account_owner(self, user_id: str) -> bool:
        return bool(await self.organization_dao.get_owned_by(user_id))

    # =========================================================================
    # Membership Management
    # =========================================================================

    async def grant_organization_access(
        self, user_id: str, organization_id: UUID, role: str, granted_by: str
    ) -> bool:
        """
        Grant a user access to an organization with a role.

        Returns:
            True if access was granted or reactivated, False if the
            organization doesn't exist or the user already has access

        Raises:
            ValidationError: If the role is unknown
            OrganizationUserLimitError: If MAX_ORGANIZATION_USERS would be exceeded
        """
        if not OrganizationRole.is_valid(role):
            raise ValidationError(f"Invalid role: {role}", role=role)

        organization = await self.organization_dao.get_by_id(organization_id)
        if organization is None:
            return False

        limit = self.settings.MAX_ORGANIZATION_USERS
        if limit > 0:
            current = await self.membership_dao.count_active_members(
                organization_id, exclude_user_ids=[SYSTEM_USER_ID]
            )
            if current >= limit:
                raise OrganizationUserLimitError(
                    f"User limit reached. This organization allows at most {limit} users.",
                    organization_id=str(organization_id),
                    limit=limit,
                )

        now = utcnow()
        existing = await self.membership_dao.get_membership(user_id, organization_id)
        if existing is not None:
            if existing.is_active and not existing.is_deleted:
                return False
            existing.is_active = True
            existing.is_deleted = False
            existing.role = role
            existing.revoked_on = None
            existing.last_modified_on = now
            existing.last_modified_by = granted_by
            await self.membership_dao.save(existing)
        else:
            await self.membership_dao.add(
                OrganizationUser(
                    id=uuid4(),
                    user_id=user_id,
                    organization_id=organization_id,
                    role=role,
                    granted_by=granted_by,
                    granted_on=now,
                    is_active=True,
                    created_on=now,
                    created_by=granted_by,
                )
            )

        logger.info(f"Granted {role} in organization {organization_id} to {user_id}")
        return True

    async def revoke_organization_access(
        self, user_id: str, organization_id: UUID, revoked_by: str
    ) -> bool:
        """
        Revoke a user's membership.

        Raises:
            BusinessRuleViolation: If the user owns the organization
        """
        membership = await self.membership_dao.get_active_membership(user_id, organization_id)
        if membership is None:
            return False

        if await self.is_owner(user_id, organization_id):
            raise BusinessRuleViolation("Cannot revoke owner's access to their own organization")

        now = utcnow()
        membership.is_active = False
        membership.revoked_on = now
        membership.last_modified_on = now
        membership.last_modified_by = revoked_by
        await self.membership_dao.save(membership)

        logger.info(f"Revoked access to organization {organization_id} for {user_id}")
        return True

    async def update_user_role(
        self, user_id: str, organization_id: UUID, new_role: str, modified_by: str
    ) -> bool:
        """
        Change a member's role.

        Raises:
            ValidationError: If the role is unknown
            BusinessRuleViolation: If the user owns the organization
        """
        if not OrganizationRole.is_valid(new_role):
            raise ValidationError(f"Invalid role: {new_role}", role=new_role)

        membership = await self.membership_dao.get_active_membership(user_id, organization_id)
        if membership is None:
            return False

        if await self.is_owner(user_id, organization_id):
            raise BusinessRuleViolation("Cannot change the role of the organization owner")

        membership.role = new_role
        membership.last_modified_on = utcnow()
        membership.last_modified_by = modified_by
        await self.membership_dao.save(membership)
        return True

    async def get_organization_members(self, organization_id: UUID) -> List[OrganizationUser]:
        return await self.membership_dao.get_active_for_organization(organization_id)
