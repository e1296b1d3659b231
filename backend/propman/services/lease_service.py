"""
Lease Service.

WHAT: Tenant-scoped CRUD for leases.

WHY: A lease ties together a property and a tenant. Both must be
visible in the caller's active organization; a foreign id is reported
as missing.
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from propman.core.exceptions import ValidationError
from propman.models.lease import Lease, LeaseStatus
from propman.models.property import Property
from propman.models.tenant import Tenant
from propman.services.base import BaseService

_CURRENT_STATUSES = (LeaseStatus.ACTIVE, LeaseStatus.MONTH_TO_MONTH)


class LeaseService(BaseService[Lease]):
    model = Lease

    async def validate_entity(self, entity: Lease) -> None:
        if entity.start_date is None or entity.end_date is None:
            raise ValidationError("Lease start and end dates are required")
        if entity.end_date <= entity.start_date:
            raise ValidationError("Lease end date must be after start date", field="end_date")
        if entity.monthly_rent is None or Decimal(entity.monthly_rent) <= 0:
            raise ValidationError("Monthly rent must be positive", field="monthly_rent")
        if entity.security_deposit is not None and Decimal(entity.security_deposit) < 0:
            raise ValidationError("Security deposit cannot be negative", field="security_deposit")
        if entity.status is not None and entity.status not in LeaseStatus.ALL:
            raise ValidationError(f"Invalid lease status: {entity.status}", field="status")

        await self.require_related(Property, entity.property_id, "property_id")
        await self.require_related(Tenant, entity.tenant_id, "tenant_id")

    async def get_leases_for_property(self, property_id: UUID) -> List[Lease]:
        return await self.find(Lease.property_id == property_id)

    async def get_current_lease(
        self, property_id: UUID, on: Optional[date] = None
    ) -> Optional[Lease]:
        """The lease in force on a property at a date (today by default)."""
        on = on or date.today()
        leases = await self.find(
            Lease.property_id == property_id,
            Lease.status.in_(_CURRENT_STATUSES),
            Lease.start_date <= on,
            Lease.end_date >= on,
        )
        return leases[0] if leases else None

    async def get_expiring_leases(self, before: date) -> List[Lease]:
        return await self.find(Lease.status.in_(_CURRENT_STATUSES), Lease.end_date <= before)
