"""Maintenance request service."""

from datetime import date
from typing import List, Optional

from propman.core.exceptions import ValidationError
from propman.models.maintenance import MaintenancePriority, MaintenanceRequest, MaintenanceStatus
from propman.models.property import Property
from propman.services.base import BaseService


class MaintenanceRequestService(BaseService[MaintenanceRequest]):
    model = MaintenanceRequest

    async def validate_entity(self, entity: MaintenanceRequest) -> None:
        if not entity.title or not entity.title.strip():
            raise ValidationError("Title is required", field="title")
        if entity.priority is not None and entity.priority not in MaintenancePriority.ALL:
            raise ValidationError(f"Invalid priority: {entity.priority}", field="priority")
        if entity.requested_on is None:
            entity.requested_on = date.today()
        await self.require_related(Property, entity.property_id, "property_id")

    async def get_open_requests(self) -> List[MaintenanceRequest]:
        return await self.find(
            MaintenanceRequest.status.in_(
                (MaintenanceStatus.SUBMITTED, MaintenanceStatus.IN_PROGRESS)
            )
        )

    async def complete(
        self, request: MaintenanceRequest, completed_on: Optional[date] = None
    ) -> MaintenanceRequest:
        """Mark a request completed through the regular update path."""
        request.status = MaintenanceStatus.COMPLETED
        request.completed_on = completed_on or date.today()
        return await self.update(request)
