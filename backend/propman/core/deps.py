"""
FastAPI dependencies for authentication and authorization.

WHY: Dependencies provide reusable authentication and authorization logic
that can be injected into route handlers, so every route resolves the
caller, the tenant context and the role policies the same way.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from propman.core.auth import Principal, principal_from_token
from propman.core.authorization import (
    AuthorizationService,
    OrganizationPolicyProvider,
    OrganizationRoleAuthorizationHandler,
    organization_policy_name,
)
from propman.core.exceptions import (
    AuthenticationError,
    InsufficientPermissionsError,
    TokenExpiredError,
    TokenInvalidError,
)
from propman.dao.organization import OrganizationUserDAO
from propman.dao.user import UserDAO
from propman.db.session import database, get_db
from propman.models.user import User
from propman.services.backup_service import DatabaseBackupService
from propman.services.organization_service import OrganizationService
from propman.services.user_context import UserContextService

# HTTP Bearer token security scheme
# auto_error=False: anonymous callers get an anonymous Principal, and
# each dependency below decides whether that is acceptable
security = HTTPBearer(auto_error=False)


async def get_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Principal:
    """
    Resolve the bearer token to a Principal.

    Returns:
        Anonymous principal when no Authorization header is sent

    Raises:
        AuthenticationError: If a token is sent but is invalid or expired
    """
    if credentials is None:
        return Principal.anonymous()

    try:
        return principal_from_token(credentials.credentials)
    except (TokenExpiredError, TokenInvalidError) as e:
        # Re-raise as AuthenticationError for consistent API responses
        raise AuthenticationError(message=str(e), status_code=e.status_code)


async def get_current_user(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Get the authenticated, active user record.

    Raises:
        AuthenticationError: Anonymous caller, unknown user or inactive user
    """
    if not principal.is_authenticated or not principal.user_id:
        raise AuthenticationError(message="Authentication required")

    user = await UserDAO(db).get_by_id(principal.user_id)
    if user is None:
        # User might have been deleted after token was issued
        raise AuthenticationError(message="User not found", user_id=principal.user_id)
    if not user.is_active:
        raise AuthenticationError(message="User account is inactive", user_id=principal.user_id)
    return user


def get_organization_service(db: AsyncSession = Depends(get_db)) -> OrganizationService:
    return OrganizationService(db)


async def get_user_context(
    principal: Principal = Depends(get_principal),
    db: AsyncSession = Depends(get_db),
) -> UserContextService:
    """
    Per-request tenant context.

    WHY: One UserContextService per request means the active organization
    is resolved at most once per request and never leaks between users.
    """
    return UserContextService(principal, UserDAO(db), OrganizationService(db))


def get_authorization_service(db: AsyncSession = Depends(get_db)) -> AuthorizationService:
    return AuthorizationService(
        provider=OrganizationPolicyProvider(),
        handler=OrganizationRoleAuthorizationHandler(UserDAO(db), OrganizationUserDAO(db)),
    )


def get_backup_service() -> DatabaseBackupService:
    return DatabaseBackupService(database)


def require_organization_policy(policy_name: str):
    """
    Factory function to create a policy requirement dependency.

    Usage:
        @router.get("/properties")
        async def list_properties(
            principal: Principal = Depends(require_organization_policy("OrganizationMember")),
        ): ...

    Raises (from the dependency):
        AuthenticationError: Anonymous caller
        InsufficientPermissionsError: Policy denied
    """

    async def policy_checker(
        principal: Principal = Depends(get_principal),
        authorization: AuthorizationService = Depends(get_authorization_service),
    ) -> Principal:
        if not principal.is_authenticated:
            raise AuthenticationError(message="Authentication required")
        if not await authorization.authorize(principal, policy_name):
            raise InsufficientPermissionsError(
                message="You do not have access to this resource",
                user_id=principal.user_id,
                policy=policy_name,
            )
        return principal

    return policy_checker


def require_organization_role(*roles: str):
    """require_organization_policy for an explicit role set (no roles = any member)."""
    return require_organization_policy(organization_policy_name(*roles))


def require_permission(permission: str):
    """
    Factory function for a permission-string check in the active organization.

    Usage:
        @router.post("/admin/backups")
        async def create_backup(
            user_context: UserContextService = Depends(require_permission("organizations.backup")),
        ): ...
    """

    async def permission_checker(
        user_context: UserContextService = Depends(get_user_context),
    ) -> UserContextService:
        if not user_context.is_authenticated():
            raise AuthenticationError(message="Authentication required")
        if not await user_context.has_permission(permission):
            raise InsufficientPermissionsError(
                message=f"Permission '{permission}' required",
                user_id=user_context.get_user_id(),
                permission=permission,
            )
        return user_context

    return permission_checker
