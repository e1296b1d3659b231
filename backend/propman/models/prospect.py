"""Prospective tenant and tour models."""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text, Uuid

from propman.models.base import Base, EntityMixin, OrganizationOwnedMixin
from propman.models.property import Property


class ProspectStatus:
    LEAD = "Lead"
    TOUR_SCHEDULED = "TourScheduled"
    APPLIED = "Applied"
    SCREENING = "Screening"
    APPROVED = "Approved"
    DENIED = "Denied"
    CONVERTED_TO_TENANT = "ConvertedToTenant"


class TourStatus:
    SCHEDULED = "Scheduled"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    NO_SHOW = "NoShow"


class ProspectiveTenant(Base, EntityMixin, OrganizationOwnedMixin):
    __tablename__ = "prospective_tenants"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(20), nullable=True)
    status = Column(String(50), nullable=False, default=ProspectStatus.LEAD)
    source = Column(String(100), nullable=True)
    interested_property_id = Column(Uuid, ForeignKey("properties.id"), nullable=True)
    desired_move_in_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    __sample_data_parents__ = (("interested_property_id", Property),)


class Tour(Base, EntityMixin, OrganizationOwnedMixin):
    __tablename__ = "tours"

    prospective_tenant_id = Column(
        Uuid, ForeignKey("prospective_tenants.id"), nullable=False, index=True
    )
    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False, index=True)
    scheduled_on = Column(DateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False, default=30)
    status = Column(String(50), nullable=False, default=TourStatus.SCHEDULED)
    feedback = Column(Text, nullable=True)
    conducted_by = Column(String(100), nullable=True)

    __sample_data_parents__ = (
        ("prospective_tenant_id", ProspectiveTenant),
        ("property_id", Property),
    )
