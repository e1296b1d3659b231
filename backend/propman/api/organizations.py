"""
Organization API endpoints.

WHY: A user can belong to several organizations but works in one at a
time. These endpoints list the choices, report the active one, switch
between them, and create new ones.
"""

from typing import List

from fastapi import APIRouter, Depends, status

from propman.core.deps import get_current_user, get_organization_service, get_user_context
from propman.core.exceptions import OrganizationAccessDenied
from propman.models.user import User
from propman.schemas.organization import (
    ActiveOrganizationResponse,
    MembershipResponse,
    OrganizationCreate,
    OrganizationResponse,
    SwitchOrganizationRequest,
)
from propman.services.organization_service import OrganizationService
from propman.services.user_context import UserContextService

router = APIRouter(prefix="/organizations", tags=["organizations"])


@router.get(
    "",
    response_model=List[MembershipResponse],
    summary="List organizations the caller can switch to",
)
async def list_organizations(
    current_user: User = Depends(get_current_user),
    user_context: UserContextService = Depends(get_user_context),
) -> List[MembershipResponse]:
    active_id = await user_context.get_active_organization_id()
    memberships = await user_context.get_accessible_organizations()
    return [
        MembershipResponse(
            organization_id=membership.organization_id,
            role=membership.role,
            granted_on=membership.granted_on,
            is_active_organization=membership.organization_id == active_id,
        )
        for membership in memberships
    ]


@router.get(
    "/active",
    response_model=ActiveOrganizationResponse,
    summary="Get the caller's active organization",
)
async def get_active_organization(
    current_user: User = Depends(get_current_user),
    user_context: UserContextService = Depends(get_user_context),
) -> ActiveOrganizationResponse:
    organization = await user_context.get_active_organization()
    role = await user_context.get_current_organization_role()
    return ActiveOrganizationResponse(
        organization=OrganizationResponse.model_validate(organization) if organization else None,
        role=role,
    )


@router.post(
    "/switch",
    response_model=ActiveOrganizationResponse,
    summary="Make another organization active",
)
async def switch_organization(
    data: SwitchOrganizationRequest,
    current_user: User = Depends(get_current_user),
    user_context: UserContextService = Depends(get_user_context),
) -> ActiveOrganizationResponse:
    """
    Switch the active organization.

    Raises:
        OrganizationAccessDenied (404): Not a member; reported like a
            missing organization so membership can't be probed
    """
    if not await user_context.switch_organization(data.organization_id):
        raise OrganizationAccessDenied(
            message="Organization not found",
            organization_id=str(data.organization_id),
        )
    return await get_active_organization(current_user, user_context)


@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create organization",
    description="Create a new organization owned by the caller",
)
async def create_organization(
    data: OrganizationCreate,
    current_user: User = Depends(get_current_user),
    organization_service: OrganizationService = Depends(get_organization_service),
) -> OrganizationResponse:
    organization = await organization_service.create_organization(
        owner_id=current_user.id,
        name=data.name,
        display_name=data.display_name,
        state=data.state,
    )
    return OrganizationResponse.model_validate(organization)
