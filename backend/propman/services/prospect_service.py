"""
Prospective tenant and tour services.

WHY: Scheduling a tour moves a lead forward in the pipeline; that status
change is a side effect of creating the tour rather than something the
caller must remember to do.
"""

from typing import List
from uuid import UUID

from propman.core.exceptions import ValidationError
from propman.models.base import utcnow
from propman.models.property import Property
from propman.models.prospect import ProspectiveTenant, ProspectStatus, Tour
from propman.services.base import BaseService


class ProspectiveTenantService(BaseService[ProspectiveTenant]):
    model = ProspectiveTenant

    async def validate_entity(self, entity: ProspectiveTenant) -> None:
        if not entity.first_name or not entity.last_name:
            raise ValidationError("First and last name are required")
        if not entity.email or "@" not in entity.email:
            raise ValidationError("A valid email is required", field="email")
        if entity.interested_property_id is not None:
            await self.require_related(
                Property, entity.interested_property_id, "interested_property_id"
            )


class TourService(BaseService[Tour]):
    model = Tour

    async def validate_entity(self, entity: Tour) -> None:
        if entity.scheduled_on is None:
            raise ValidationError("Tour time is required", field="scheduled_on")
        if entity.duration_minutes is not None and entity.duration_minutes <= 0:
            raise ValidationError("Tour duration must be positive", field="duration_minutes")
        await self.require_related(
            ProspectiveTenant, entity.prospective_tenant_id, "prospective_tenant_id"
        )
        await self.require_related(Property, entity.property_id, "property_id")

    async def after_create(self, entity: Tour) -> None:
        prospect = await self.require_related(
            ProspectiveTenant, entity.prospective_tenant_id, "prospective_tenant_id"
        )
        if prospect.status == ProspectStatus.LEAD:
            prospect.status = ProspectStatus.TOUR_SCHEDULED
            prospect.last_modified_by = entity.created_by
            prospect.last_modified_on = utcnow()
            await self.session.flush()

    async def get_tours_for_property(self, property_id: UUID) -> List[Tour]:
        return await self.find(Tour.property_id == property_id)
