"""
Application schema version bookkeeping.

WHAT: Reads and appends rows in schema_versions.

WHY: Alembic revisions say which DDL has run; the application schema
version says which release of the data model the store was last opened
by. A mismatch is worth a warning but not a refusal to start, because a
newer build can always read what an older migration chain produced.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from propman.db.session import Database
from propman.models.base import utcnow
from propman.models.system import SchemaVersion

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SchemaValidationResult:
    is_valid: bool
    current_version: Optional[str]
    expected_version: str
    message: str


class SchemaVersionService:
    """Schema version rows for one Database."""

    def __init__(self, database: Database):
        self.database = database

    async def get_current_schema_version(self) -> Optional[str]:
        """
        Latest version by applied_on.

        Returns:
            None if the table is missing or empty
        """
        try:
            async with self.database.session() as session:
                result = await session.execute(
                    select(SchemaVersion.version)
                    .order_by(SchemaVersion.applied_on.desc(), SchemaVersion.id.desc())
                    .limit(1)
                )
                return result.scalar_one_or_none()
        except OperationalError as e:
            logger.warning(f"Could not read schema version: {e}")
            return None

    async def update_schema_version(self, version: str, description: Optional[str] = None) -> SchemaVersion:
        """Append a version row; history is never rewritten."""
        async with self.database.session() as session:
            row = SchemaVersion(version=version, applied_on=utcnow(), description=description)
            session.add(row)
            await session.commit()
        logger.info(f"Schema version set to {version}")
        return row

    async def validate_schema_version(self, expected_version: str) -> SchemaValidationResult:
        current = await self.get_current_schema_version()
        if current is None:
            return SchemaValidationResult(
                False, None, expected_version, "No schema version recorded"
            )
        if current != expected_version:
            return SchemaValidationResult(
                False,
                current,
                expected_version,
                f"Schema version mismatch: database {current}, application {expected_version}",
            )
        return SchemaValidationResult(True, current, expected_version, "Schema version matches")
