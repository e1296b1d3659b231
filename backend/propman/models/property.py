"""
Property model.

WHY: A property is the root of most tenant-owned data; leases, maintenance
requests, inspections and tours all point at one.
"""

from sqlalchemy import Boolean, Column, Integer, Numeric, String, Text

from propman.models.base import Base, EntityMixin, OrganizationOwnedMixin


class PropertyStatus:
    AVAILABLE = "Available"
    APPLICATION_PENDING = "ApplicationPending"
    LEASE_PENDING = "LeasePending"
    OCCUPIED = "Occupied"
    UNDER_RENOVATION = "UnderRenovation"
    OFF_MARKET = "OffMarket"

    ALL = (AVAILABLE, APPLICATION_PENDING, LEASE_PENDING, OCCUPIED, UNDER_RENOVATION, OFF_MARKET)


class Property(Base, EntityMixin, OrganizationOwnedMixin):
    __tablename__ = "properties"

    address = Column(String(200), nullable=False)
    unit_number = Column(String(50), nullable=True)
    city = Column(String(100), nullable=False, default="")
    state = Column(String(50), nullable=False, default="")
    zip_code = Column(String(10), nullable=False, default="")
    property_type = Column(String(50), nullable=False, default="House")
    bedrooms = Column(Integer, nullable=False, default=0)
    bathrooms = Column(Numeric(3, 1), nullable=False, default=0)
    square_feet = Column(Integer, nullable=False, default=0)
    monthly_rent = Column(Numeric(18, 2), nullable=False, default=0)
    status = Column(String(50), nullable=False, default=PropertyStatus.AVAILABLE)
    is_available = Column(Boolean, nullable=False, default=True)
    description = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, address={self.address})>"
