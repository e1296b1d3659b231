"""Tenant Service."""

from typing import List, Optional

from sqlalchemy import func

from propman.core.exceptions import ValidationError
from propman.models.tenant import Tenant
from propman.services.base import BaseService


class TenantService(BaseService[Tenant]):
    model = Tenant

    async def validate_entity(self, entity: Tenant) -> None:
        if not entity.first_name or not entity.last_name:
            raise ValidationError("First and last name are required")
        if not entity.email or "@" not in entity.email:
            raise ValidationError("A valid email is required", field="email")

    async def get_by_email(self, email: str) -> Optional[Tenant]:
        matches = await self.find(func.lower(Tenant.email) == email.lower())
        return matches[0] if matches else None

    async def get_active_tenants(self) -> List[Tenant]:
        return await self.find(Tenant.is_active.is_(True))
