"""Inspection service."""

from typing import List
from uuid import UUID

from propman.core.exceptions import ValidationError
from propman.models.inspection import Inspection, InspectionType
from propman.models.lease import Lease
from propman.models.property import Property
from propman.services.base import BaseService


class InspectionService(BaseService[Inspection]):
    model = Inspection

    async def validate_entity(self, entity: Inspection) -> None:
        if entity.inspection_type is not None and entity.inspection_type not in InspectionType.ALL:
            raise ValidationError(
                f"Invalid inspection type: {entity.inspection_type}", field="inspection_type"
            )
        if entity.completed_on is None:
            raise ValidationError("Inspection date is required", field="completed_on")
        await self.require_related(Property, entity.property_id, "property_id")
        if entity.lease_id is not None:
            await self.require_related(Lease, entity.lease_id, "lease_id")

    async def get_inspections_for_property(self, property_id: UUID) -> List[Inspection]:
        return await self.find(Inspection.property_id == property_id)
