"""
Database backup service.

WHAT: Creates, lists, prunes and restores file-level backups of the
SQLite store, and runs the integrity probe.

WHY: The store is a single file, so a backup is a file copy. Copying a
live WAL-mode database is only safe once the write-ahead log has been
folded back into the main file and every pooled connection is closed;
this service does both before touching the file.

HOW:
- Backups live in a `Backups` directory beside the store, named
  `<stem>_<reason>_<yyyyMMdd_HHmmss>.db` (a `_<n>` counter is appended if
  two backups land in the same second)
- Copies are retried a fixed number of times on OSError, with a fixed
  delay between attempts
- After each successful backup only the newest N files are kept
- A restore never overwrites anything: the current file is moved aside
  to a unique `.corrupted.<timestamp>` name first

Failures to back up are reported as None rather than raised: callers
treat "no backup" as "don't touch the live store".
"""

import asyncio
import logging
import re
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from propman.core.config import Settings, settings as default_settings
from propman.core.exceptions import BackupNotFoundError
from propman.db.encryption import create_probe_engine
from propman.db.session import Database

logger = logging.getLogger(__name__)

SIDECAR_SUFFIXES = ("-wal", "-shm")
RESTORE_PENDING_SUFFIX = ".restore_pending"
_BACKUP_NAME = re.compile(r"_(\d{8}_\d{6})(?:_(\d+))?\.db$")


class BackupReason:
    MANUAL = "Manual"
    SCHEDULED = "Scheduled"
    INITIAL_SETUP = "InitialSetup"

    @staticmethod
    def pre_migration(pending_count: int) -> str:
        return f"PreMigration_{pending_count}Pending"


@dataclass(frozen=True)
class BackupInfo:
    file_path: Path
    file_name: str
    created_at: datetime
    size_bytes: int

    @property
    def size_formatted(self) -> str:
        size = float(self.size_bytes)
        for unit in ("B", "KB", "MB", "GB"):
            if size < 1024 or unit == "GB":
                return f"{size:.0f} {unit}" if unit == "B" else f"{size:.2f} {unit}"
            size /= 1024
        return f"{size:.2f} GB"


@dataclass(frozen=True)
class HealthCheckResult:
    is_healthy: bool
    message: str


@dataclass(frozen=True)
class RecoveryResult:
    success: bool
    message: str
    backup_path: Optional[Path] = None


def _sort_key(path: Path) -> Tuple[int, str, int]:
    """Creation order: mtime, then the timestamp and counter encoded in the name."""
    match = _BACKUP_NAME.search(path.name)
    stamp, counter = (match.group(1), int(match.group(2) or 0)) if match else ("", 0)
    return (path.stat().st_mtime_ns, stamp, counter)


class DatabaseBackupService:
    """
    File-level backup and restore for one Database.

    `clock` is injectable so backup and quarantine names can be made
    deterministic in tests.
    """

    def __init__(
        self,
        database: Database,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.database = database
        self.settings = settings or default_settings
        self.clock = clock

    # =========================================================================
    # Paths
    # =========================================================================

    def get_database_path(self) -> Path:
        return self.database.path

    def get_backup_directory(self) -> Path:
        return self.database.path.parent / self.settings.BACKUP_DIRECTORY_NAME

    def get_pending_restore_path(self) -> Path:
        db_path = self.get_database_path()
        return db_path.with_name(db_path.name + RESTORE_PENDING_SUFFIX)

    def _backup_path(self, reason: str) -> Path:
        stem = self.get_database_path().stem
        stamp = self.clock().strftime("%Y%m%d_%H%M%S")
        directory = self.get_backup_directory()
        candidate = directory / f"{stem}_{reason}_{stamp}.db"
        counter = 1
        while candidate.exists():
            candidate = directory / f"{stem}_{reason}_{stamp}_{counter}.db"
            counter += 1
        return candidate

    def _quarantine_path(self, label: str, stamp_format: str) -> Path:
        """`<db>.<label>.<timestamp>` with a `.N` counter if that name is taken."""
        db_path = self.get_database_path()
        stamp = self.clock().strftime(stamp_format)
        if stamp_format.endswith("%f"):
            stamp = stamp[:-3]  # milliseconds
        base = db_path.with_name(f"{db_path.name}.{label}.{stamp}")
        candidate = base
        counter = 1
        while candidate.exists():
            candidate = base.with_name(f"{base.name}.{counter}")
            counter += 1
        return candidate

    # =========================================================================
    # Backup
    # =========================================================================

    async def _release_handles(self) -> None:
        await self.database.dispose()
        await asyncio.sleep(self.settings.HANDLE_RELEASE_DELAY_SECONDS)

    def _checkpoint(self) -> None:
        engine = create_probe_engine(self.get_database_path(), self.database.passphrase)
        try:
            with engine.connect() as connection:
                connection.exec_driver_sql("PRAGMA wal_checkpoint(TRUNCATE)")
        finally:
            engine.dispose()

    def _copy_file(self, source: Path, destination: Path) -> None:
        # copyfile (not copy2) so the backup's mtime is its creation time
        shutil.copyfile(source, destination)

    async def _copy_with_retries(self, source: Path, destination: Path) -> bool:
        retries = max(1, self.settings.BACKUP_COPY_RETRIES)
        for attempt in range(1, retries + 1):
            try:
                await asyncio.to_thread(self._copy_file, source, destination)
                return True
            except OSError as e:
                if attempt == retries:
                    logger.error(f"Backup copy failed after {retries} attempts: {e}")
                    return False
                logger.warning(f"Backup copy attempt {attempt} failed ({e}); retrying")
                await asyncio.sleep(self.settings.BACKUP_RETRY_DELAY_SECONDS)
        return False

    async def create_backup(self, reason: str = BackupReason.MANUAL) -> Optional[Path]:
        """
        Copy the store into the backup directory.

        Returns:
            Path of the new backup, or None if the store doesn't exist or
            the copy failed
        """
        db_path = self.get_database_path()
        if not db_path.exists():
            logger.warning(f"No database at {db_path}; skipping {reason} backup")
            return None

        try:
            await self.database.dispose()
            try:
                await asyncio.to_thread(self._checkpoint)
            except SQLAlchemyError as e:
                logger.warning(f"WAL checkpoint before backup failed: {e}")
            await asyncio.sleep(self.settings.HANDLE_RELEASE_DELAY_SECONDS)

            backup_dir = self.get_backup_directory()
            backup_dir.mkdir(parents=True, exist_ok=True)
            destination = self._backup_path(reason)

            if not await self._copy_with_retries(db_path, destination):
                destination.unlink(missing_ok=True)
                return None

            logger.info(f"Created {reason} backup {destination.name}")
            self.cleanup_old_backups(self.settings.BACKUP_RETENTION_COUNT)
            return destination
        except OSError as e:
            logger.error(f"Failed to create {reason} backup: {e}")
            return None

    async def create_pre_migration_backup(self, pending_count: int) -> Optional[Path]:
        """Backup tagged with the number of pending migrations; None if nothing is pending."""
        if pending_count <= 0:
            return None
        return await self.create_backup(BackupReason.pre_migration(pending_count))

    def get_available_backups(self) -> List[BackupInfo]:
        """Backups newest first."""
        backup_dir = self.get_backup_directory()
        if not backup_dir.is_dir():
            return []

        files = sorted(backup_dir.glob("*.db"), key=_sort_key, reverse=True)
        backups = []
        for path in files:
            stat = path.stat()
            backups.append(
                BackupInfo(
                    file_path=path,
                    file_name=path.name,
                    created_at=datetime.fromtimestamp(stat.st_mtime),
                    size_bytes=stat.st_size,
                )
            )
        return backups

    def get_backup(self, file_name: str) -> Path:
        """
        Resolve a backup by file name.

        Raises:
            BackupNotFoundError: If the name is not a file in the backup directory
        """
        if Path(file_name).name != file_name:
            raise BackupNotFoundError(file_name=file_name)
        path = self.get_backup_directory() / file_name
        if not path.is_file():
            raise BackupNotFoundError(file_name=file_name)
        return path

    def cleanup_old_backups(self, keep_count: int) -> int:
        """
        Delete all but the newest `keep_count` backups.

        Returns:
            Number of files deleted
        """
        removed = 0
        for backup in self.get_available_backups()[keep_count:]:
            try:
                backup.file_path.unlink()
                removed += 1
                logger.info(f"Deleted old backup {backup.file_name}")
            except OSError as e:
                logger.warning(f"Could not delete old backup {backup.file_name}: {e}")
        return removed

    # =========================================================================
    # Health
    # =========================================================================

    def _integrity_check(self) -> HealthCheckResult:
        db_path = self.get_database_path()
        if not db_path.exists():
            return HealthCheckResult(False, "Database file not found")

        engine = create_probe_engine(db_path, self.database.passphrase)
        try:
            with engine.connect() as connection:
                result = connection.execute(text("PRAGMA integrity_check")).scalar()
            if result == "ok":
                return HealthCheckResult(True, "Database integrity verified")
            return HealthCheckResult(False, f"Integrity check failed: {result}")
        except SQLAlchemyError as e:
            return HealthCheckResult(False, f"Integrity check error: {e}")
        finally:
            engine.dispose()

    async def validate_database_health(self) -> HealthCheckResult:
        """Run PRAGMA integrity_check on a fresh connection."""
        result = await asyncio.to_thread(self._integrity_check)
        if result.is_healthy:
            logger.info(result.message)
        else:
            logger.warning(f"Database health check failed: {result.message}")
        return result

    # =========================================================================
    # Restore
    # =========================================================================

    def _move_sidecars(self, destination: Optional[Path]) -> None:
        db_path = self.get_database_path()
        for suffix in SIDECAR_SUFFIXES:
            sidecar = db_path.with_name(db_path.name + suffix)
            if not sidecar.exists():
                continue
            if destination is None:
                sidecar.unlink()
            else:
                shutil.move(str(sidecar), str(destination.with_name(destination.name + suffix)))

    async def restore_from_backup(self, backup_path: Path) -> bool:
        """
        Replace the store with a backup.

        The current file (and any WAL/SHM sidecars) is moved to
        `<db>.corrupted.<yyyyMMddHHmmssfff>` first; nothing is overwritten.

        Returns:
            True if the backup now sits at the store path
        """
        backup_path = Path(backup_path)
        if not backup_path.is_file():
            logger.error(f"Backup {backup_path} not found")
            return False

        db_path = self.get_database_path()
        try:
            await self._release_handles()

            quarantine = None
            if db_path.exists():
                quarantine = self._quarantine_path("corrupted", "%Y%m%d%H%M%S%f")
                shutil.move(str(db_path), str(quarantine))
                logger.warning(f"Moved current database aside to {quarantine.name}")
            self._move_sidecars(quarantine)

            await asyncio.to_thread(self._copy_file, backup_path, db_path)
            logger.info(f"Restored database from {backup_path.name}")
            return True
        except OSError as e:
            logger.error(f"Restore from {backup_path.name} failed: {e}")
            return False

    async def auto_recover_from_corruption(self) -> RecoveryResult:
        """Try each backup, newest first, until one restores and passes the health probe."""
        backups = self.get_available_backups()
        if not backups:
            return RecoveryResult(False, "No backups available for recovery")

        for backup in backups:
            logger.info(f"Attempting recovery from {backup.file_name}")
            if not await self.restore_from_backup(backup.file_path):
                continue
            health = await self.validate_database_health()
            if health.is_healthy:
                return RecoveryResult(True, f"Recovered from {backup.file_name}", backup.file_path)
            logger.warning(f"Backup {backup.file_name} is not healthy: {health.message}")

        return RecoveryResult(False, "All backups failed to restore a healthy database")

    def stage_restore(self, backup_path: Path) -> Path:
        """
        Copy a backup to `<db>.restore_pending` so the next startup swaps it in.

        WHY: Replacing the store while requests are being served would pull
        the file out from under open sessions. Staging defers the swap to
        the one moment nothing is connected.
        """
        staged = self.get_pending_restore_path()
        self._copy_file(Path(backup_path), staged)
        logger.info(f"Staged {Path(backup_path).name} for restore on next startup")
        return staged

    def has_pending_restore(self) -> bool:
        return self.get_pending_restore_path().exists()

    async def apply_pending_restore(self) -> bool:
        """
        Promote a staged restore to be the live store.

        The current file is moved to `<db>.beforeRestore.<timestamp>` and
        stale WAL/SHM sidecars are deleted so they can't be replayed on
        top of the restored file.

        Returns:
            True if a staged file was applied
        """
        staged = self.get_pending_restore_path()
        if not staged.exists():
            return False

        db_path = self.get_database_path()
        try:
            await self._release_handles()
            self._move_sidecars(None)
            if db_path.exists():
                before = self._quarantine_path("beforeRestore", "%Y%m%d%H%M%S")
                shutil.move(str(db_path), str(before))
                logger.info(f"Moved current database aside to {before.name}")
            shutil.move(str(staged), str(db_path))
            logger.info("Applied staged restore")
            return True
        except OSError as e:
            logger.error(f"Failed to apply staged restore: {e}")
            return False

    async def quarantine_database(self) -> Optional[Path]:
        """
        Move an unrecoverable store (and its sidecars) to `<db>.corrupted.<timestamp>`.

        Returns:
            The quarantine path, or None if there was no store
        """
        db_path = self.get_database_path()
        if not db_path.exists():
            return None
        await self._release_handles()
        quarantine = self._quarantine_path("corrupted", "%Y%m%d%H%M%S")
        shutil.move(str(db_path), str(quarantine))
        self._move_sidecars(quarantine)
        logger.warning(f"Corrupted database moved to {quarantine.name}")
        return quarantine
