"""
Database models.

WHY: Importing every model here registers all tables on Base.metadata,
which Alembic autogenerate and the test fixtures rely on.
"""

from propman.models.base import Base, EntityMixin, EntityState, OrganizationOwnedMixin
from propman.models.user import SYSTEM_USER_ID, User
from propman.models.organization import Organization, OrganizationRole, OrganizationUser
from propman.models.property import Property, PropertyStatus
from propman.models.tenant import Tenant
from propman.models.lease import Lease, LeaseStatus
from propman.models.invoice import Invoice, InvoiceStatus, Payment
from propman.models.maintenance import MaintenancePriority, MaintenanceRequest, MaintenanceStatus
from propman.models.inspection import Inspection, InspectionType
from propman.models.prospect import ProspectiveTenant, ProspectStatus, Tour, TourStatus
from propman.models.system import DatabaseSettings, SchemaVersion

__all__ = [
    "Base",
    "EntityMixin",
    "EntityState",
    "OrganizationOwnedMixin",
    "SYSTEM_USER_ID",
    "User",
    "Organization",
    "OrganizationRole",
    "OrganizationUser",
    "Property",
    "PropertyStatus",
    "Tenant",
    "Lease",
    "LeaseStatus",
    "Invoice",
    "InvoiceStatus",
    "Payment",
    "MaintenanceRequest",
    "MaintenanceStatus",
    "MaintenancePriority",
    "Inspection",
    "InspectionType",
    "ProspectiveTenant",
    "ProspectStatus",
    "Tour",
    "TourStatus",
    "DatabaseSettings",
    "SchemaVersion",
]
