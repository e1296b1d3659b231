"""
Database bookkeeping models.

WHY: These rows describe the store itself rather than any tenant's
business data, so they are global and never pass through the access layer.
"""

from sqlalchemy import Boolean, Column, DateTime, Integer, String

from propman.models.base import Base, utcnow


class SchemaVersion(Base):
    """
    One row per application schema version applied to this store.

    The latest row by applied_on is the current version.
    """

    __tablename__ = "schema_versions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    version = Column(String(50), nullable=False)
    applied_on = Column(DateTime, nullable=False, default=utcnow)
    description = Column(String(500), nullable=True)


class DatabaseSettings(Base):
    """Singleton row recording whether the store is encrypted."""

    __tablename__ = "database_settings"

    id = Column(Integer, primary_key=True)
    database_encryption_enabled = Column(Boolean, nullable=False, default=False)
    encryption_changed_on = Column(DateTime, nullable=True)
    last_modified_on = Column(DateTime, nullable=True)
    last_modified_by = Column(String(100), nullable=True)
