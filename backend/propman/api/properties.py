"""
Property API endpoints.

WHY: Properties are the first tenant-owned resource exposed over HTTP and
show the standard shape every such resource follows:
1. A role policy on the route decides *whether* the caller may act
2. The entity service decides *which* rows the caller can see, always
   scoped to the active organization

Reads need any active membership; writes need Owner, Administrator or
Property Manager.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from propman.core.auth import Principal
from propman.core.deps import get_user_context, require_organization_role
from propman.core.exceptions import ResourceNotFoundError
from propman.db.session import get_db
from propman.models.organization import OrganizationRole
from propman.models.property import Property
from propman.schemas.property import PropertyCreate, PropertyResponse, PropertyUpdate
from propman.services.property_service import PropertyService
from propman.services.user_context import UserContextService

router = APIRouter(prefix="/properties", tags=["properties"])

require_member = require_organization_role()
require_manager = require_organization_role(
    OrganizationRole.OWNER,
    OrganizationRole.ADMINISTRATOR,
    OrganizationRole.PROPERTY_MANAGER,
)


def get_property_service(
    db: AsyncSession = Depends(get_db),
    user_context: UserContextService = Depends(get_user_context),
) -> PropertyService:
    return PropertyService(db, user_context)


@router.get("", response_model=List[PropertyResponse], summary="List properties")
async def list_properties(
    available: bool = Query(False, description="Only properties open for rent"),
    q: Optional[str] = Query(None, max_length=100, description="Address or city contains"),
    principal: Principal = Depends(require_member),
    service: PropertyService = Depends(get_property_service),
) -> List[Property]:
    if q:
        return await service.search(q)
    if available:
        return await service.get_available_properties()
    return await service.get_all()


@router.get("/{property_id}", response_model=PropertyResponse, summary="Get property")
async def get_property(
    property_id: UUID,
    principal: Principal = Depends(require_member),
    service: PropertyService = Depends(get_property_service),
) -> Property:
    """
    Raises:
        ResourceNotFoundError (404): Missing, deleted, or in another organization
    """
    entity = await service.get_by_id(property_id)
    if entity is None:
        raise ResourceNotFoundError(message="Property not found", property_id=str(property_id))
    return entity


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create property",
)
async def create_property(
    data: PropertyCreate,
    principal: Principal = Depends(require_manager),
    service: PropertyService = Depends(get_property_service),
) -> Property:
    return await service.create(Property(**data.model_dump()))


@router.put("/{property_id}", response_model=PropertyResponse, summary="Replace property")
async def update_property(
    property_id: UUID,
    data: PropertyUpdate,
    principal: Principal = Depends(require_manager),
    service: PropertyService = Depends(get_property_service),
) -> Property:
    """
    Full replacement of a property's fields.

    Raises:
        OrganizationAccessDenied (404): Missing, deleted, or in another organization
    """
    return await service.update(Property(id=property_id, **data.model_dump()))


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete property",
)
async def delete_property(
    property_id: UUID,
    principal: Principal = Depends(require_manager),
    service: PropertyService = Depends(get_property_service),
) -> Response:
    if not await service.delete(property_id):
        raise ResourceNotFoundError(message="Property not found", property_id=str(property_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
