"""
Property Service.

WHAT: Tenant-scoped CRUD for properties plus availability queries.
"""

from decimal import Decimal
from typing import List

from propman.core.exceptions import ValidationError
from propman.models.property import Property, PropertyStatus
from propman.services.base import BaseService


class PropertyService(BaseService[Property]):
    model = Property

    async def validate_entity(self, entity: Property) -> None:
        if not entity.address or not entity.address.strip():
            raise ValidationError("Address is required", field="address")
        if entity.monthly_rent is not None and Decimal(entity.monthly_rent) < 0:
            raise ValidationError("Monthly rent cannot be negative", field="monthly_rent")
        if entity.bedrooms is not None and entity.bedrooms < 0:
            raise ValidationError("Bedrooms cannot be negative", field="bedrooms")
        if entity.status is not None and entity.status not in PropertyStatus.ALL:
            raise ValidationError(f"Invalid property status: {entity.status}", field="status")

    async def get_available_properties(self) -> List[Property]:
        return await self.find(
            Property.is_available.is_(True), Property.status == PropertyStatus.AVAILABLE
        )

    async def search(self, term: str) -> List[Property]:
        """Case-insensitive match on address or city."""
        pattern = f"%{term.strip()}%"
        return await self.find(Property.address.ilike(pattern) | Property.city.ilike(pattern))
