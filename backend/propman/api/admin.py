"""
Database administration API endpoints.

WHY: Owners need to take a backup on demand, see what backups exist,
check the store's health, and pick a backup to restore. A restore is
only *staged* here: swapping the store out from under a running server
would break every open session, so the swap happens on the next startup.

All routes require the organizations.backup permission (Owner).
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, status

from propman.core.deps import get_backup_service, require_permission
from propman.core.exceptions import DatabaseError
from propman.schemas.backup import (
    BackupCreateResponse,
    BackupResponse,
    DatabaseHealthResponse,
    StageRestoreResponse,
)
from propman.services.backup_service import BackupReason, DatabaseBackupService
from propman.services.scheduler import get_scheduler_status
from propman.services.schema_version import SchemaVersionService
from propman.services.user_context import UserContextService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

require_backup_permission = require_permission("organizations.backup")


@router.get("/backups", response_model=List[BackupResponse], summary="List backups")
async def list_backups(
    user_context: UserContextService = Depends(require_backup_permission),
    backup_service: DatabaseBackupService = Depends(get_backup_service),
) -> List[BackupResponse]:
    return [
        BackupResponse(
            file_name=backup.file_name,
            created_at=backup.created_at,
            size_bytes=backup.size_bytes,
            size_formatted=backup.size_formatted,
        )
        for backup in backup_service.get_available_backups()
    ]


@router.post(
    "/backups",
    response_model=BackupCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a manual backup",
)
async def create_backup(
    user_context: UserContextService = Depends(require_backup_permission),
    backup_service: DatabaseBackupService = Depends(get_backup_service),
) -> BackupCreateResponse:
    """
    Raises:
        DatabaseError (500): The copy failed after all retries
    """
    path = await backup_service.create_backup(BackupReason.MANUAL)
    if path is None:
        raise DatabaseError(message="Backup failed")
    logger.info(f"Manual backup {path.name} requested by {user_context.get_user_id()}")
    return BackupCreateResponse(file_name=path.name, message="Backup created")


@router.post(
    "/backups/{file_name}/stage",
    response_model=StageRestoreResponse,
    summary="Stage a backup for restore on next startup",
)
async def stage_restore(
    file_name: str,
    user_context: UserContextService = Depends(require_backup_permission),
    backup_service: DatabaseBackupService = Depends(get_backup_service),
) -> StageRestoreResponse:
    """
    Raises:
        BackupNotFoundError (404): No backup with that name
    """
    backup_path = backup_service.get_backup(file_name)
    backup_service.stage_restore(backup_path)
    logger.warning(f"Restore of {file_name} staged by {user_context.get_user_id()}")
    return StageRestoreResponse(
        file_name=file_name,
        message="Restore will be applied on the next application start",
    )


@router.get(
    "/database/health",
    response_model=DatabaseHealthResponse,
    summary="Database integrity and schema version",
)
async def database_health(
    user_context: UserContextService = Depends(require_backup_permission),
    backup_service: DatabaseBackupService = Depends(get_backup_service),
) -> DatabaseHealthResponse:
    health = await backup_service.validate_database_health()
    schema_service = SchemaVersionService(backup_service.database)
    schema_version = await schema_service.get_current_schema_version()
    return DatabaseHealthResponse(
        is_healthy=health.is_healthy,
        message=health.message,
        schema_version=schema_version,
        scheduler=get_scheduler_status(),
    )
