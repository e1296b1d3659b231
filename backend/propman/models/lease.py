"""
Lease model.

A lease binds one tenant to one property for a date range. It inherits the
sample-data marker from either parent.
"""

from sqlalchemy import Column, Date, ForeignKey, Numeric, String, Text, Uuid

from propman.models.base import Base, EntityMixin, OrganizationOwnedMixin
from propman.models.property import Property
from propman.models.tenant import Tenant


class LeaseStatus:
    OFFERED = "Offered"
    ACTIVE = "Active"
    EXPIRED = "Expired"
    TERMINATED = "Terminated"
    RENEWED = "Renewed"
    MONTH_TO_MONTH = "MonthToMonth"

    ALL = (OFFERED, ACTIVE, EXPIRED, TERMINATED, RENEWED, MONTH_TO_MONTH)


class Lease(Base, EntityMixin, OrganizationOwnedMixin):
    __tablename__ = "leases"

    property_id = Column(Uuid, ForeignKey("properties.id"), nullable=False, index=True)
    tenant_id = Column(Uuid, ForeignKey("tenants.id"), nullable=False, index=True)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    monthly_rent = Column(Numeric(18, 2), nullable=False)
    security_deposit = Column(Numeric(18, 2), nullable=False, default=0)
    status = Column(String(50), nullable=False, default=LeaseStatus.ACTIVE)
    terms = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    __sample_data_parents__ = (("property_id", Property), ("tenant_id", Tenant))
