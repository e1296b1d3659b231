"""
User model.

WHY: The user record carries the single active organization. Storing it
here rather than in session state makes an organization switch durable
across sessions and devices.
"""

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, String, Uuid

from propman.models.base import Base, utcnow

# Account that owns seeded sample data; never counted against user limits
SYSTEM_USER_ID = "00000000-0000-0000-0000-000000000001"


class User(Base):
    """Identity record owned by the identity provider."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    # No foreign key: the referenced organization may be soft-deleted while
    # the user still points at it; resolution re-checks membership.
    active_organization_id = Column(Uuid, nullable=True)

    created_on = Column(DateTime, nullable=False, default=utcnow)
    last_login_on = Column(DateTime, nullable=True)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part) or self.email

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
