"""
Pydantic schemas for property endpoints.

WHY: The API accepts only business fields. Tenant ownership, ids and the
audit stamps are always set server-side, so they are not part of the
request contracts.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from propman.models.property import PropertyStatus


class PropertyBase(BaseModel):
    address: str = Field(..., min_length=1, max_length=200, description="Street address")
    unit_number: str | None = Field(default=None, max_length=50)
    city: str = Field(default="", max_length=100)
    state: str = Field(default="", max_length=50)
    zip_code: str = Field(default="", max_length=10)
    property_type: str = Field(default="House", max_length=50)
    bedrooms: int = Field(default=0, ge=0)
    bathrooms: Decimal = Field(default=Decimal("0"), ge=0)
    square_feet: int = Field(default=0, ge=0)
    monthly_rent: Decimal = Field(default=Decimal("0"), description="Monthly rent")
    status: str = Field(default=PropertyStatus.AVAILABLE, description="Property status")
    is_available: bool = True
    description: str | None = None


class PropertyCreate(PropertyBase):
    class Config:
        json_schema_extra = {
            "example": {
                "address": "12 Elm Street",
                "city": "Portland",
                "state": "OR",
                "zip_code": "97201",
                "bedrooms": 3,
                "bathrooms": "1.5",
                "monthly_rent": "1850.00",
            }
        }


class PropertyUpdate(PropertyBase):
    """Full replacement: every field is written, omitted ones take their defaults."""


class PropertyResponse(PropertyBase):
    id: UUID
    organization_id: UUID
    is_sample_data: bool
    created_by: str
    created_on: datetime
    last_modified_by: str | None = None
    last_modified_on: datetime | None = None

    class Config:
        from_attributes = True
