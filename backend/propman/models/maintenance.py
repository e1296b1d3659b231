"""Maintenance request model."""

from sqlalchemy import Column, Date, ForeignKey, Numeric, String, Text, Uuid

from propman.models.base import Base, EntityMixin, OrganizationOwnedMixin
from propman.models.property import Property


class MaintenanceStatus:
    SUBMITTED = "Submitted"
    IN_PROGRESS = "InProgress"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class MaintenancePriority:
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    URGENT = "Urgent"

    ALL = (LOW, MEDIUM, HIGH, URGENT)


class MaintenanceRequest(Base, EntityMixin, OrganizationOwnedMixin):
    __tablename__ = "maintenance_requests"

    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False, index=True)
    lease_id = Column(Uuid, ForeignKey("leases.id"), nullable=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    request_type = Column(String(50), nullable=False, default="General")
    priority = Column(String(20), nullable=False, default=MaintenancePriority.MEDIUM)
    status = Column(String(20), nullable=False, default=MaintenanceStatus.SUBMITTED)
    requested_on = Column(Date, nullable=False)
    scheduled_on = Column(Date, nullable=True)
    completed_on = Column(Date, nullable=True)
    estimated_cost = Column(Numeric(18, 2), nullable=True)
    actual_cost = Column(Numeric(18, 2), nullable=True)
    assigned_to = Column(String(100), nullable=True)
    resolution_notes = Column(Text, nullable=True)

    __sample_data_parents__ = (("property_id", Property),)
