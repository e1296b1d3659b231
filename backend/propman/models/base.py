"""
Base model classes for all SQLAlchemy models.

WHY: Every business record shares one shape: a UUID surrogate key, a
creation/modification audit pair, a soft-delete flag and a sample-data
marker. Records that belong to a tenant additionally carry the
OrganizationOwnedMixin, which is the explicit capability the access layer
checks instead of probing attribute names at runtime.
"""

import enum
from datetime import datetime, timezone
from typing import Any, ClassVar, Optional, Tuple
from uuid import UUID

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, String, Uuid
from sqlalchemy.orm import DeclarativeBase, declared_attr
from sqlalchemy.sql.elements import ColumnElement


def utcnow() -> datetime:
    """Naive UTC timestamp (SQLite stores datetimes without an offset)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    WHY: DeclarativeBase provides the foundation for SQLAlchemy 2.0 models
    with improved type hints and async support.
    """

    pass


class EntityState(str, enum.Enum):
    """Lifecycle of a persisted record."""

    ACTIVE = "Active"
    DELETED = "Deleted"


class EntityMixin:
    """
    Common columns for every persisted business record.

    WHY: id and the audit pair are populated server-side by the access
    layer, never by callers. is_deleted is the storage form of
    EntityState; code reads `lifecycle` and filters with `active_clause()`.
    """

    id = Column(Uuid, primary_key=True)
    created_by = Column(String(100), nullable=False, default="")
    created_on = Column(DateTime, nullable=False, default=utcnow)
    last_modified_by = Column(String(100), nullable=True)
    last_modified_on = Column(DateTime, nullable=True)
    is_deleted = Column(Boolean, nullable=False, default=False)
    is_sample_data = Column(Boolean, nullable=False, default=False)

    # (foreign key attribute, parent model) pairs; a new child created under
    # a sample-data parent is marked as sample data too
    __sample_data_parents__: ClassVar[Tuple[Tuple[str, Any], ...]] = ()

    @property
    def lifecycle(self) -> EntityState:
        return EntityState.DELETED if self.is_deleted else EntityState.ACTIVE

    @classmethod
    def active_clause(cls) -> ColumnElement[bool]:
        """Typed predicate selecting rows in the ACTIVE state."""
        return cls.is_deleted.is_(False)


class OrganizationOwnedMixin:
    """
    Marks a model as owned by exactly one organization.

    WHY: The access layer scopes every query and write for subclasses of
    this mixin to the caller's active organization. Models without it are
    treated as global.
    """

    @declared_attr
    def organization_id(cls):
        return Column(Uuid, ForeignKey("organizations.id"), nullable=False, index=True)

    def get_organization_id(self) -> Optional[UUID]:
        return self.organization_id

    def set_organization_id(self, organization_id: UUID) -> None:
        self.organization_id = organization_id
