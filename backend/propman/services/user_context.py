"""
User context service (tenant context resolver).

WHAT: Resolves the authenticated principal to a user id, the user's
active organization, and the user's role in that organization.

WHY: Every tenant-scoped read and write needs the active organization.
Resolving it once per request and caching it keeps the access layer from
hitting the user and membership tables on every call, while refresh()
lets an organization switch take effect within the same request.

HOW: One instance per logical session (per request in the API). The
cache is plain instance state; nothing is shared between instances, so
no locking is needed.
"""

import logging
from typing import List, Optional
from uuid import UUID

from propman.core.auth import Principal
from propman.core.exceptions import UnauthenticatedAccessError
from propman.dao.user import UserDAO
from propman.models.organization import Organization, OrganizationRole, OrganizationUser
from propman.models.user import User
from propman.services.organization_service import OrganizationService

logger = logging.getLogger(__name__)

# Permission string -> predicate over the caller's role
_OWNER_ONLY = (OrganizationRole.OWNER,)
_OWNER_OR_ADMIN = (OrganizationRole.OWNER, OrganizationRole.ADMINISTRATOR)

PERMISSION_ROLES = {
    "organizations.create": _OWNER_ONLY,
    "organizations.delete": _OWNER_ONLY,
    "organizations.backup": _OWNER_ONLY,
    "organizations.deletedata": _OWNER_ONLY,
    "settings.edit": _OWNER_OR_ADMIN,
    "settings.retention": _OWNER_OR_ADMIN,
    "users.manage": _OWNER_OR_ADMIN,
}


class UserContextService:
    """
    Per-session cache of "who is calling and for which organization".

    Callers MUST treat a None active organization as "no scoped data",
    not as an error.
    """

    def __init__(
        self,
        principal: Principal,
        user_dao: UserDAO,
        organization_service: OrganizationService,
    ):
        self.principal = principal
        self.user_dao = user_dao
        self.organization_service = organization_service
        self._clear()

    def _clear(self) -> None:
        self._initialized = False
        self._user: Optional[User] = None
        self._active_organization_id: Optional[UUID] = None
        self._role: Optional[str] = None
        self._role_loaded = False

    async def _ensure_initialized(self) -> None:
        if self._initialized:
            return

        user_id = self.get_user_id()
        if user_id is not None:
            self._user = await self.user_dao.get_by_id(user_id)
            if self._user is not None:
                self._active_organization_id = self._user.active_organization_id

        self._initialized = True

    def is_authenticated(self) -> bool:
        return bool(self.principal.is_authenticated and self.principal.user_id)

    def get_user_id(self) -> Optional[str]:
        """The authenticated user's id, or None for anonymous callers."""
        if not self.is_authenticated():
            return None
        return self.principal.user_id

    def require_user_id(self) -> str:
        """
        Return the user id or fail.

        Raises:
            UnauthenticatedAccessError: If no user is authenticated
        """
        user_id = self.get_user_id()
        if user_id is None:
            raise UnauthenticatedAccessError()
        return user_id

    async def get_current_user(self) -> Optional[User]:
        await self._ensure_initialized()
        return self._user

    async def get_active_organization_id(self) -> Optional[UUID]:
        """
        The organization currently active for the user.

        Returns None when unauthenticated, when the user record is
        missing, or when the user has not selected an organization yet.
        """
        if not self.is_authenticated():
            return None
        await self._ensure_initialized()
        return self._active_organization_id

    async def get_active_organization(self) -> Optional[Organization]:
        organization_id = await self.get_active_organization_id()
        if organization_id is None:
            return None
        return await self.organization_service.get_organization_by_id(organization_id)

    async def get_current_organization_role(self) -> Optional[str]:
        """Role in the active organization, or None if there is no active membership."""
        if self._role_loaded:
            return self._role

        user_id = self.get_user_id()
        organization_id = await self.get_active_organization_id()
        if user_id is not None and organization_id is not None:
            self._role = await self.organization_service.get_user_role_for_organization(
                user_id, organization_id
            )
        self._role_loaded = True
        return self._role

    async def get_accessible_organizations(self) -> List[OrganizationUser]:
        user_id = self.get_user_id()
        if user_id is None:
            return []
        return await self.organization_service.get_user_organizations(user_id)

    async def get_user_email(self) -> Optional[str]:
        user = await self.get_current_user()
        return user.email if user else None

    async def get_user_name(self) -> Optional[str]:
        user = await self.get_current_user()
        return user.full_name if user else None

    async def refresh(self) -> None:
        """Drop every cached field; the next access re-derives them."""
        self._clear()

    async def switch_organization(self, organization_id: UUID) -> bool:
        """
        Make another organization active for the user.

        WHY: The active organization lives on the user record so the
        choice survives across sessions. Membership is checked first;
        a non-member gets False, never an exception.

        Returns:
            True if the switch was persisted
        """
        user_id = self.get_user_id()
        if user_id is None:
            return False

        if not await self.organization_service.can_access_organization(user_id, organization_id):
            logger.warning(f"User {user_id} denied switch to organization {organization_id}")
            return False

        user = await self.get_current_user()
        if user is None:
            return False

        await self.user_dao.set_active_organization(user, organization_id)
        await self.refresh()
        logger.info(f"User {user_id} switched to organization {organization_id}")
        return True

    async def has_permission(self, permission: str) -> bool:
        """
        Map a permission string to a role check in the active organization.

        Unknown permissions are denied. Matching ignores case.
        """
        permission = permission.lower()
        role = await self.get_current_organization_role()
        if role is None:
            return False

        if permission == "properties.manage":
            return role != OrganizationRole.USER

        allowed = PERMISSION_ROLES.get(permission)
        return allowed is not None and role in allowed

    async def is_account_owner(self) -> bool:
        """True if the user owns at least one organization."""
        user_id = self.get_user_id()
        if user_id is None:
            return False
        return await self.organization_service.is_account_owner(user_id)
