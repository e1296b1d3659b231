"""Inspection model."""

from sqlalchemy import Column, Date, ForeignKey, String, Text, Uuid

from propman.models.base import Base, EntityMixin, OrganizationOwnedMixin
from propman.models.property import Property


class InspectionType:
    MOVE_IN = "Move-In"
    MOVE_OUT = "Move-Out"
    ROUTINE = "Routine"

    ALL = (MOVE_IN, MOVE_OUT, ROUTINE)


class Inspection(Base, EntityMixin, OrganizationOwnedMixin):
    __tablename__ = "inspections"

    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False, index=True)
    lease_id = Column(Uuid, ForeignKey("leases.id"), nullable=True)
    completed_on = Column(Date, nullable=False)
    inspection_type = Column(String(50), nullable=False, default=InspectionType.ROUTINE)
    inspected_by = Column(String(100), nullable=True)
    overall_condition = Column(String(20), nullable=False, default="Good")
    general_notes = Column(Text, nullable=True)
    action_items = Column(Text, nullable=True)

    __sample_data_parents__ = (("property_id", Property),)
