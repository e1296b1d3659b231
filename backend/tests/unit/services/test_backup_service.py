"""
Tests for DatabaseBackupService.

WHY: Backups are the only way back from a bad migration or a corrupt
file. These tests run against real files in a temporary directory so
that naming, ordering, retention and the move-aside-before-restore rule
are checked against the filesystem, not a mock of it.
"""

from datetime import datetime, timedelta

import pytest

from propman.core.exceptions import BackupNotFoundError
from propman.services.backup_service import (
    BackupInfo,
    BackupReason,
    DatabaseBackupService,
)
from tests.factories import StoreFactory

FIXED_NOW = datetime(2026, 1, 2, 3, 4, 5, 678000)


def fixed_clock():
    return FIXED_NOW


class SteppingClock:
    """Advances one second per call so every backup gets its own name."""

    def __init__(self, start: datetime = FIXED_NOW):
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current += timedelta(seconds=1)
        return value


@pytest.fixture
def backup_service(store, test_settings):
    return DatabaseBackupService(store, test_settings, clock=fixed_clock)


class TestCreateBackup:
    @pytest.mark.asyncio
    async def test_backup_is_named_after_store_reason_and_time(self, store, backup_service):
        path = await backup_service.create_backup()

        assert path.name == "propman_Manual_20260102_030405.db"
        assert path.parent == store.path.parent / "Backups"
        assert path.read_bytes() == store.path.read_bytes()

    @pytest.mark.asyncio
    async def test_same_second_backups_get_a_counter(self, backup_service):
        first = await backup_service.create_backup(BackupReason.SCHEDULED)
        second = await backup_service.create_backup(BackupReason.SCHEDULED)

        assert first.name == "propman_Scheduled_20260102_030405.db"
        assert second.name == "propman_Scheduled_20260102_030405_1.db"
        assert [b.file_name for b in backup_service.get_available_backups()] == [
            second.name,
            first.name,
        ]

    @pytest.mark.asyncio
    async def test_missing_store_returns_none(self, tmp_path, test_settings):
        from propman.db.session import Database

        service = DatabaseBackupService(Database(tmp_path / "absent.db"), test_settings)

        assert await service.create_backup() is None
        assert not service.get_backup_directory().exists()

    @pytest.mark.asyncio
    async def test_pre_migration_backup_names_pending_count(self, backup_service):
        path = await backup_service.create_pre_migration_backup(2)

        assert path.name == "propman_PreMigration_2Pending_20260102_030405.db"

    @pytest.mark.asyncio
    async def test_pre_migration_backup_skipped_when_nothing_pending(self, backup_service):
        assert await backup_service.create_pre_migration_backup(0) is None
        assert backup_service.get_available_backups() == []


class TestCopyRetries:
    @pytest.mark.asyncio
    async def test_transient_copy_failures_are_retried(self, backup_service):
        real_copy = backup_service._copy_file
        calls = []

        def flaky_copy(source, destination):
            calls.append(destination)
            if len(calls) < 3:
                raise PermissionError("file is locked")
            real_copy(source, destination)

        backup_service._copy_file = flaky_copy

        path = await backup_service.create_backup()

        assert path is not None and path.exists()
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_configured_attempts(self, store, test_settings):
        settings = test_settings.model_copy(update={"BACKUP_COPY_RETRIES": 2})
        service = DatabaseBackupService(store, settings, clock=fixed_clock)
        calls = []

        def always_fails(source, destination):
            calls.append(destination)
            raise OSError("disk full")

        service._copy_file = always_fails

        assert await service.create_backup() is None
        assert len(calls) == 2
        assert service.get_available_backups() == []


class TestRetention:
    @pytest.mark.asyncio
    async def test_only_newest_backups_are_kept(self, store, test_settings):
        service = DatabaseBackupService(store, test_settings, clock=SteppingClock())

        created = [await service.create_backup() for _ in range(15)]

        remaining = service.get_available_backups()
        assert len(remaining) == 10
        assert [b.file_path for b in remaining] == list(reversed(created[5:]))
        assert not any(path.exists() for path in created[:5])

    @pytest.mark.asyncio
    async def test_cleanup_reports_deleted_count(self, store, test_settings):
        service = DatabaseBackupService(store, test_settings, clock=SteppingClock())
        for _ in range(4):
            await service.create_backup()

        assert service.cleanup_old_backups(1) == 3
        assert len(service.get_available_backups()) == 1
        assert service.cleanup_old_backups(1) == 0


class TestLookup:
    @pytest.mark.asyncio
    async def test_get_backup_by_name(self, backup_service):
        path = await backup_service.create_backup()

        assert backup_service.get_backup(path.name) == path

    @pytest.mark.parametrize("name", ["missing.db", "../propman.db", "Backups/../../etc/passwd"])
    def test_get_backup_rejects_unknown_or_traversal(self, backup_service, name):
        with pytest.raises(BackupNotFoundError):
            backup_service.get_backup(name)

    def test_no_backup_directory_means_no_backups(self, backup_service):
        assert backup_service.get_available_backups() == []

    @pytest.mark.parametrize(
        "size,expected",
        [(512, "512 B"), (2048, "2.00 KB"), (5 * 1024 * 1024, "5.00 MB")],
    )
    def test_size_formatted(self, tmp_path, size, expected):
        info = BackupInfo(tmp_path / "x.db", "x.db", FIXED_NOW, size)
        assert info.size_formatted == expected


class TestHealth:
    @pytest.mark.asyncio
    async def test_fresh_store_is_healthy(self, backup_service):
        result = await backup_service.validate_database_health()

        assert result.is_healthy is True

    @pytest.mark.asyncio
    async def test_corrupt_store_is_unhealthy(self, store, backup_service):
        StoreFactory.corrupt(store.path)

        result = await backup_service.validate_database_health()

        assert result.is_healthy is False

    @pytest.mark.asyncio
    async def test_missing_store_is_unhealthy(self, store, backup_service):
        store.path.unlink()

        result = await backup_service.validate_database_health()

        assert result.is_healthy is False
        assert "not found" in result.message


class TestRestore:
    @pytest.mark.asyncio
    async def test_restore_moves_current_file_aside(self, store, backup_service):
        backup = await backup_service.create_backup()
        StoreFactory.corrupt(store.path)
        corrupted_bytes = store.path.read_bytes()

        assert await backup_service.restore_from_backup(backup) is True

        assert store.path.read_bytes() == backup.read_bytes()
        quarantined = store.path.with_name("propman.db.corrupted.20260102030405678")
        assert quarantined.read_bytes() == corrupted_bytes

    @pytest.mark.asyncio
    async def test_repeated_restore_never_overwrites_quarantine(self, store, backup_service):
        backup = await backup_service.create_backup()

        assert await backup_service.restore_from_backup(backup)
        assert await backup_service.restore_from_backup(backup)

        base = store.path.with_name("propman.db.corrupted.20260102030405678")
        assert base.exists()
        assert base.with_name(base.name + ".1").exists()

    @pytest.mark.asyncio
    async def test_restore_moves_sidecars_with_the_file(self, store, backup_service):
        backup = await backup_service.create_backup()
        wal = store.path.with_name("propman.db-wal")
        wal.write_bytes(b"stale log")

        assert await backup_service.restore_from_backup(backup)

        assert not wal.exists()
        assert store.path.with_name("propman.db.corrupted.20260102030405678-wal").exists()

    @pytest.mark.asyncio
    async def test_restore_from_missing_backup_fails(self, store, backup_service, tmp_path):
        original = store.path.read_bytes()

        assert await backup_service.restore_from_backup(tmp_path / "nope.db") is False
        assert store.path.read_bytes() == original


class TestAutoRecover:
    @pytest.mark.asyncio
    async def test_recovers_from_newest_healthy_backup(self, store, test_settings):
        service = DatabaseBackupService(store, test_settings, clock=SteppingClock())
        await service.create_backup()
        newest = await service.create_backup()
        StoreFactory.corrupt(store.path)

        result = await service.auto_recover_from_corruption()

        assert result.success is True
        assert result.backup_path == newest
        assert (await service.validate_database_health()).is_healthy

    @pytest.mark.asyncio
    async def test_skips_corrupt_backups(self, store, test_settings):
        service = DatabaseBackupService(store, test_settings, clock=SteppingClock())
        good = await service.create_backup()
        bad = await service.create_backup()
        StoreFactory.corrupt(bad)
        StoreFactory.corrupt(store.path)

        result = await service.auto_recover_from_corruption()

        assert result.success is True
        assert result.backup_path == good

    @pytest.mark.asyncio
    async def test_no_backups_fails(self, store, backup_service):
        StoreFactory.corrupt(store.path)

        result = await backup_service.auto_recover_from_corruption()

        assert result.success is False
        assert "No backups" in result.message


class TestStagedRestore:
    @pytest.mark.asyncio
    async def test_stage_then_apply(self, store, backup_service):
        backup = await backup_service.create_backup()
        StoreFactory.corrupt(store.path)
        wal = store.path.with_name("propman.db-wal")
        wal.write_bytes(b"stale log")

        staged = backup_service.stage_restore(backup)
        assert staged.name == "propman.db.restore_pending"
        assert backup_service.has_pending_restore() is True

        assert await backup_service.apply_pending_restore() is True

        assert store.path.read_bytes() == backup.read_bytes()
        assert not staged.exists()
        assert not wal.exists()
        assert store.path.with_name("propman.db.beforeRestore.20260102030405").exists()
        assert backup_service.has_pending_restore() is False

    @pytest.mark.asyncio
    async def test_apply_without_staged_file_is_noop(self, store, backup_service):
        original = store.path.read_bytes()

        assert await backup_service.apply_pending_restore() is False
        assert store.path.read_bytes() == original


class TestQuarantine:
    @pytest.mark.asyncio
    async def test_quarantine_moves_store(self, store, backup_service):
        path = await backup_service.quarantine_database()

        assert path.name == "propman.db.corrupted.20260102030405"
        assert path.exists()
        assert not store.path.exists()

    @pytest.mark.asyncio
    async def test_quarantine_without_store_returns_none(self, store, backup_service):
        store.path.unlink()

        assert await backup_service.quarantine_database() is None

