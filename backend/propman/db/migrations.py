"""
Schema migrations.

WHAT: Lists pending Alembic revisions and upgrades the store to head.

WHY: The startup sequence needs to know *whether* anything is pending
before touching the store, so it can take a pre-migration backup only
when there is something to roll back from.

HOW: Both operations run on a connection from the application's own
engine via run_sync, so an encrypted store is migrated through the same
keyed connection the application uses.
"""

import logging
from pathlib import Path
from typing import List, Optional

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy.engine import Connection

from propman.db.session import Database

logger = logging.getLogger(__name__)

MIGRATIONS_PATH = Path(__file__).resolve().parent.parent / "migrations"


def build_alembic_config(database: Database) -> Config:
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_PATH))
    config.set_main_option("sqlalchemy.url", database.url)
    return config


class MigrationService:
    """Alembic operations against one Database."""

    def __init__(self, database: Database):
        self.database = database
        self.config = build_alembic_config(database)

    @property
    def script(self) -> ScriptDirectory:
        return ScriptDirectory.from_config(self.config)

    def _pending_for(self, connection: Connection) -> List[str]:
        current_heads = set(MigrationContext.configure(connection).get_current_heads())
        pending = []
        # walk_revisions goes head -> base
        for revision in self.script.walk_revisions():
            if revision.revision in current_heads:
                break
            pending.append(revision.revision)
        pending.reverse()
        return pending

    async def get_pending_migrations(self) -> List[str]:
        """Revision ids not yet applied, oldest first."""
        async with self.database.engine.connect() as connection:
            return await connection.run_sync(self._pending_for)

    async def get_pending_migrations_count(self) -> int:
        return len(await self.get_pending_migrations())

    async def get_current_revision(self) -> Optional[str]:
        async with self.database.engine.connect() as connection:
            return await connection.run_sync(
                lambda sync_conn: MigrationContext.configure(sync_conn).get_current_revision()
            )

    def _upgrade(self, connection: Connection) -> None:
        self.config.attributes["connection"] = connection
        try:
            command.upgrade(self.config, "head")
        finally:
            self.config.attributes.pop("connection", None)

    async def upgrade(self) -> None:
        """Apply every pending revision inside one transaction."""
        logger.info(f"Applying migrations to {self.database.path.name}")
        async with self.database.engine.begin() as connection:
            await connection.run_sync(self._upgrade)
        logger.info("Migrations applied")
