"""
Organization and membership models.

WHY: Organizations are the tenants. A user can belong to many
organizations through OrganizationUser rows, each carrying a role.
Only memberships that are active and not soft-deleted count for access
decisions.
"""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid

from propman.models.base import Base, EntityMixin


class OrganizationRole:
    """
    Role names stored on OrganizationUser.role.

    WHY: Roles are plain strings so policy names like
    "OrganizationRole:Owner,Administrator" can be written by hand.
    """

    OWNER = "Owner"
    ADMINISTRATOR = "Administrator"
    PROPERTY_MANAGER = "Property Manager"
    MAINTENANCE = "Maintenance"
    USER = "User"

    ALL_ROLES = (OWNER, ADMINISTRATOR, PROPERTY_MANAGER, MAINTENANCE, USER)

    @classmethod
    def is_valid(cls, role: str) -> bool:
        return role in cls.ALL_ROLES

    @classmethod
    def can_manage_users(cls, role: str) -> bool:
        return role in (cls.OWNER, cls.ADMINISTRATOR)

    @classmethod
    def can_edit_settings(cls, role: str) -> bool:
        return role in (cls.OWNER, cls.ADMINISTRATOR)

    @classmethod
    def can_manage_organizations(cls, role: str) -> bool:
        return role == cls.OWNER

    @classmethod
    def can_manage_properties(cls, role: str) -> bool:
        return role in (cls.OWNER, cls.ADMINISTRATOR, cls.PROPERTY_MANAGER)

    @classmethod
    def can_manage_tenants(cls, role: str) -> bool:
        return role in (cls.OWNER, cls.ADMINISTRATOR, cls.PROPERTY_MANAGER)


class Organization(Base, EntityMixin):
    """
    Organization model representing a tenant.

    owner_id is the account owner; the owner's membership can never be
    revoked or demoted.
    """

    __tablename__ = "organizations"

    owner_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    display_name = Column(String(200), nullable=True)
    state = Column(String(2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name})>"


class OrganizationUser(Base, EntityMixin):
    """
    Membership of a user in an organization.

    revoked_on is set when access is revoked; granting again reactivates
    the same row instead of inserting a new one.
    """

    __tablename__ = "organization_users"
    __table_args__ = (
        UniqueConstraint("organization_id", "user_id", name="uq_organization_users_org_user"),
    )

    organization_id = Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=False, index=True)
    role = Column(String(50), nullable=False)
    granted_by = Column(String(36), nullable=False)
    granted_on = Column(DateTime, nullable=False)
    revoked_on = Column(DateTime, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return (
            f"<OrganizationUser(org={self.organization_id}, user={self.user_id}, role={self.role})>"
        )
