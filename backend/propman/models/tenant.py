"""Tenant (renter) model."""

from sqlalchemy import Boolean, Column, Date, String, Text

from propman.models.base import Base, EntityMixin, OrganizationOwnedMixin


class Tenant(Base, EntityMixin, OrganizationOwnedMixin):
    __tablename__ = "tenants"

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone_number = Column(String(20), nullable=True)
    date_of_birth = Column(Date, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    emergency_contact_name = Column(String(200), nullable=True)
    emergency_contact_phone = Column(String(20), nullable=True)
    notes = Column(Text, nullable=True)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
