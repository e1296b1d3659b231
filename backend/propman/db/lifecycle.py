"""
Database startup sequence.

WHAT: Runs once before the application serves traffic and leaves the
store encrypted-or-not as detected, restored if a restore was staged,
healthy, migrated to head, and stamped with the schema version.

WHY: Every step here can destroy data if done in the wrong order. A
health probe that runs before encryption detection would "recover" a
perfectly good encrypted store; a migration that runs without a backup
cannot be rolled back. The order is therefore fixed:

1. Apply a staged restore, if any
2. Detect encryption and configure the database handle
3. Probe health (desktop mode only); auto-recover or quarantine
4. Existing store: back up, migrate, probe again; roll back on failure
5. New store: migrate to head, then take the InitialSetup backup
6. Reconcile the schema version and the encryption flag

HOW: Collaborators are injected so each step can be exercised against a
real temporary file with a fake migrator or secret store. Only two
outcomes abort startup: an encrypted store with no passphrase
(DatabaseEncryptionError) and a failed migration (MigrationError or the
original exception, after the pre-migration backup has been restored).
"""

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from sqlalchemy import select

from propman.core.config import Settings, settings as default_settings
from propman.core.exceptions import MigrationError
from propman.db.encryption import EncryptionDetectionResult, detect_encryption
from propman.db.migrations import MigrationService
from propman.db.session import Database
from propman.models.base import utcnow
from propman.models.system import DatabaseSettings
from propman.services.backup_service import BackupReason, DatabaseBackupService
from propman.services.keychain import KeychainService, get_keychain_service
from propman.services.schema_version import SchemaVersionService

logger = logging.getLogger(__name__)

DATABASE_SETTINGS_ID = 1
AUTO_DETECT_ACTOR = "System-AutoDetect"


@dataclass
class StartupReport:
    """What the startup sequence did, for logging and tests."""

    encrypted: bool = False
    created: bool = False
    restored_from_staged: bool = False
    recovered: bool = False
    quarantined_path: Optional[Path] = None
    migrations_applied: List[str] = field(default_factory=list)
    pre_migration_backup: Optional[Path] = None
    initial_backup: Optional[Path] = None
    schema_version: Optional[str] = None


class DatabaseLifecycleManager:
    """
    Orchestrates the startup sequence for one Database.

    desktop_mode defaults to settings.DESKTOP_MODE. Web mode skips every
    health probe (before and after migration); the store is assumed to be
    looked after by whoever operates the server.
    """

    def __init__(
        self,
        database: Database,
        settings: Optional[Settings] = None,
        keychain: Optional[KeychainService] = None,
        backup_service: Optional[DatabaseBackupService] = None,
        migrator: Optional[MigrationService] = None,
        schema_service: Optional[SchemaVersionService] = None,
        desktop_mode: Optional[bool] = None,
    ):
        self.database = database
        self.settings = settings or default_settings
        self.keychain = keychain or get_keychain_service(self.settings)
        self.backup_service = backup_service or DatabaseBackupService(database, self.settings)
        self.migrator = migrator or MigrationService(database)
        self.schema_service = schema_service or SchemaVersionService(database)
        self.desktop_mode = self.settings.DESKTOP_MODE if desktop_mode is None else desktop_mode

    async def run(self) -> StartupReport:
        """
        Execute the startup sequence.

        Raises:
            DatabaseEncryptionError: Encrypted store, no passphrase available
            MigrationError: Migration left the store unhealthy (already rolled back)
            Exception: Whatever the migration raised (already rolled back)
        """
        report = StartupReport()
        mode = "desktop" if self.desktop_mode else "web"
        logger.info(f"Starting database lifecycle for {self.database.path} ({mode} mode)")

        # A staged file replaces the store before it is even opened, so a
        # store that can no longer be unlocked can still be restored
        report.restored_from_staged = await self.backup_service.apply_pending_restore()

        detection = await self._detect_and_configure()
        report.encrypted = detection.is_encrypted

        if self.desktop_mode and self.database.exists():
            await self._ensure_healthy(report)

        if self.database.exists():
            await self._migrate_existing(report)
        else:
            await self._create_new(report)

        report.schema_version = await self._reconcile_schema_version()
        await self._reconcile_encryption_flag(detection)

        logger.info(
            f"Database ready (created={report.created}, "
            f"migrations={len(report.migrations_applied)}, encrypted={report.encrypted})"
        )
        return report

    # =========================================================================
    # Steps
    # =========================================================================

    async def _detect_and_configure(self) -> EncryptionDetectionResult:
        detection = await asyncio.to_thread(detect_encryption, self.database.path, self.keychain)
        await self.database.configure(passphrase=detection.passphrase)
        return detection

    async def _ensure_healthy(self, report: StartupReport) -> None:
        health = await self.backup_service.validate_database_health()
        if health.is_healthy:
            return

        logger.warning(f"Attempting automatic recovery: {health.message}")
        recovery = await self.backup_service.auto_recover_from_corruption()
        if recovery.success:
            logger.info(recovery.message)
            report.recovered = True
            return

        # Start over with an empty store rather than refuse to start
        logger.error(f"Database recovery failed: {recovery.message}")
        report.quarantined_path = await self.backup_service.quarantine_database()

    async def _migrate_existing(self, report: StartupReport) -> None:
        pending = await self.migrator.get_pending_migrations()
        if not pending:
            logger.info("Database schema is up to date")
            return

        logger.info(f"Found {len(pending)} pending migrations")
        backup_path = await self.backup_service.create_pre_migration_backup(len(pending))
        report.pre_migration_backup = backup_path
        if backup_path is None:
            logger.warning("Pre-migration backup failed; migrating without a rollback point")

        try:
            await self.migrator.upgrade()
        except Exception:
            logger.exception("Migration failed; restoring pre-migration backup")
            await self._restore_pre_migration(backup_path)
            raise

        if self.desktop_mode:
            health = await self.backup_service.validate_database_health()
            if not health.is_healthy:
                logger.error(f"Database unhealthy after migration: {health.message}")
                await self._restore_pre_migration(backup_path)
                raise MigrationError(
                    f"Migration left the database unhealthy: {health.message}",
                    pending=len(pending),
                )

        report.migrations_applied = pending
        logger.info(f"Applied {len(pending)} migrations")

    async def _restore_pre_migration(self, backup_path: Optional[Path]) -> None:
        if backup_path is None:
            logger.error("No pre-migration backup to restore")
            return
        if await self.backup_service.restore_from_backup(backup_path):
            logger.info(f"Restored pre-migration backup {backup_path.name}")
        else:
            logger.error(f"Could not restore pre-migration backup {backup_path.name}")

    async def _create_new(self, report: StartupReport) -> None:
        logger.info(f"Creating new database at {self.database.path}")
        self.database.path.parent.mkdir(parents=True, exist_ok=True)

        report.migrations_applied = await self.migrator.get_pending_migrations()
        await self.migrator.upgrade()
        report.created = True

        report.initial_backup = await self.backup_service.create_backup(BackupReason.INITIAL_SETUP)

    async def _reconcile_schema_version(self) -> Optional[str]:
        expected = self.settings.SCHEMA_VERSION
        current = await self.schema_service.get_current_schema_version()
        if current is None:
            await self.schema_service.update_schema_version(expected, "Initial schema version")
            return expected
        if current != expected:
            logger.warning(
                f"Schema version mismatch: database {current}, application {expected}"
            )
        return current

    async def _reconcile_encryption_flag(self, detection: EncryptionDetectionResult) -> None:
        async with self.database.session() as session:
            result = await session.execute(
                select(DatabaseSettings).where(DatabaseSettings.id == DATABASE_SETTINGS_ID)
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = DatabaseSettings(id=DATABASE_SETTINGS_ID, database_encryption_enabled=False)
                session.add(row)

            if row.database_encryption_enabled != detection.is_encrypted:
                logger.info(
                    f"Updating database_encryption_enabled from "
                    f"{row.database_encryption_enabled} to {detection.is_encrypted}"
                )
                row.database_encryption_enabled = detection.is_encrypted
                row.encryption_changed_on = utcnow()
                row.last_modified_on = utcnow()
                row.last_modified_by = AUTO_DETECT_ACTOR
            await session.commit()
