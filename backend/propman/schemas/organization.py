"""
Pydantic schemas for organization endpoints.

WHY: Schemas define request/response contracts for organization management
and the active-organization switch.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class OrganizationCreate(BaseModel):
    """Organization creation request; the caller becomes the owner."""

    name: str = Field(..., min_length=1, max_length=200, description="Organization name")
    display_name: str | None = Field(default=None, max_length=200, description="Display name")
    state: str | None = Field(default=None, max_length=2, description="Two-letter state code")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Riverside Rentals",
                "display_name": "Riverside",
                "state": "OR",
            }
        }


class OrganizationResponse(BaseModel):
    id: UUID = Field(..., description="Organization ID")
    name: str = Field(..., description="Organization name")
    display_name: str | None = Field(None, description="Display name")
    state: str | None = Field(None, description="Two-letter state code")
    owner_id: str = Field(..., description="Account owner user ID")
    is_active: bool = Field(..., description="Whether organization is active")
    created_on: datetime = Field(..., description="Creation timestamp")

    class Config:
        from_attributes = True  # Enable ORM mode for SQLAlchemy models


class MembershipResponse(BaseModel):
    """One organization the caller can switch to, with their role in it."""

    organization_id: UUID
    role: str
    granted_on: datetime
    is_active_organization: bool = False


class SwitchOrganizationRequest(BaseModel):
    organization_id: UUID = Field(..., description="Organization to make active")


class ActiveOrganizationResponse(BaseModel):
    organization: OrganizationResponse | None = Field(
        None, description="Active organization, or null if none is selected"
    )
    role: str | None = Field(None, description="Caller's role in the active organization")
