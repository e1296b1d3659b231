"""
Organization-role authorization policies.

WHAT: Named policies that decide whether a principal may proceed, based on
the principal's role in their active organization.

WHY: Route code names a policy ("OrganizationRole:Owner,Administrator")
instead of re-implementing role lookups. The evaluation always walks the
same states:

    unauthenticated -> authenticated, no active org -> authenticated, role known

and only the last state can allow. Missing users, missing active
organizations and missing memberships all deny; none of them raise.

HOW: OrganizationPolicyProvider parses policy names into requirements and
delegates anything it doesn't recognise to a fallback provider.
OrganizationRoleAuthorizationHandler evaluates a requirement against the
database. AuthorizationService ties the two together.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol, Tuple

from propman.core.auth import Principal
from propman.dao.organization import OrganizationUserDAO
from propman.dao.user import UserDAO

logger = logging.getLogger(__name__)

ORGANIZATION_MEMBER_POLICY = "OrganizationMember"
ORGANIZATION_ROLE_PREFIX = "OrganizationRole:"
AUTHENTICATED_POLICY = "Authenticated"


@dataclass(frozen=True)
class OrganizationRoleRequirement:
    """
    Requires one of `allowed_roles` in the active organization.

    An empty tuple means "any active member".
    """

    allowed_roles: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AuthorizationPolicy:
    name: str
    requirements: Tuple[OrganizationRoleRequirement, ...] = ()
    require_authenticated: bool = True


def organization_policy_name(*roles: str) -> str:
    """Build the policy name for a role set ("OrganizationMember" for none)."""
    if not roles:
        return ORGANIZATION_MEMBER_POLICY
    return ORGANIZATION_ROLE_PREFIX + ",".join(roles)


class PolicyProvider(Protocol):
    def get_policy(self, name: str) -> Optional[AuthorizationPolicy]: ...


class DefaultPolicyProvider:
    """
    Holds explicitly registered policies.

    Only "Authenticated" is registered out of the box. Unknown names
    resolve to None, which the authorization service treats as deny.
    """

    def __init__(self) -> None:
        self._policies: Dict[str, AuthorizationPolicy] = {
            AUTHENTICATED_POLICY: AuthorizationPolicy(name=AUTHENTICATED_POLICY),
        }

    def add_policy(self, policy: AuthorizationPolicy) -> None:
        self._policies[policy.name] = policy

    def get_policy(self, name: str) -> Optional[AuthorizationPolicy]:
        return self._policies.get(name)


class OrganizationPolicyProvider:
    """
    Parses organization policy names.

    - "OrganizationMember"                 -> any active member
    - "OrganizationRole:Owner,Administrator" -> one of those roles
    - anything else                        -> fallback provider
    """

    def __init__(self, fallback: Optional[PolicyProvider] = None):
        self.fallback = fallback or DefaultPolicyProvider()

    def get_policy(self, name: str) -> Optional[AuthorizationPolicy]:
        if name == ORGANIZATION_MEMBER_POLICY:
            return AuthorizationPolicy(name=name, requirements=(OrganizationRoleRequirement(),))

        if name.startswith(ORGANIZATION_ROLE_PREFIX):
            roles = tuple(
                role.strip()
                for role in name[len(ORGANIZATION_ROLE_PREFIX):].split(",")
                if role.strip()
            )
            return AuthorizationPolicy(
                name=name, requirements=(OrganizationRoleRequirement(allowed_roles=roles),)
            )

        return self.fallback.get_policy(name)


class OrganizationRoleAuthorizationHandler:
    """
    Evaluates an OrganizationRoleRequirement for a principal.

    Fails closed at every step: no authentication, no user id, no user
    record, no active organization, or no active membership all deny.
    """

    def __init__(self, user_dao: UserDAO, membership_dao: OrganizationUserDAO):
        self.user_dao = user_dao
        self.membership_dao = membership_dao

    async def handle(self, principal: Principal, requirement: OrganizationRoleRequirement) -> bool:
        if not principal.is_authenticated or not principal.user_id:
            return False

        user = await self.user_dao.get_by_id(principal.user_id)
        if user is None or user.active_organization_id is None:
            return False

        membership = await self.membership_dao.get_active_membership(
            principal.user_id, user.active_organization_id
        )
        if membership is None:
            return False

        if not requirement.allowed_roles:
            return True
        return membership.role in requirement.allowed_roles


@dataclass
class AuthorizationService:
    """Resolves a policy by name and evaluates every requirement in it."""

    provider: PolicyProvider
    handler: OrganizationRoleAuthorizationHandler
    _cache: Dict[str, Optional[AuthorizationPolicy]] = field(default_factory=dict)

    def get_policy(self, name: str) -> Optional[AuthorizationPolicy]:
        if name not in self._cache:
            self._cache[name] = self.provider.get_policy(name)
        return self._cache[name]

    async def authorize(self, principal: Principal, policy_name: str) -> bool:
        policy = self.get_policy(policy_name)
        if policy is None:
            logger.warning(f"Unknown authorization policy '{policy_name}'")
            return False

        if policy.require_authenticated and not principal.is_authenticated:
            return False

        for requirement in policy.requirements:
            if not await self.handler.handle(principal, requirement):
                logger.info(f"Policy '{policy_name}' denied for user {principal.user_id}")
                return False
        return True
