"""
Pydantic schemas for the database administration endpoints.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class BackupResponse(BaseModel):
    file_name: str = Field(..., description="Backup file name")
    created_at: datetime = Field(..., description="When the backup was taken")
    size_bytes: int
    size_formatted: str = Field(..., description="Human-readable size, e.g. '1.50 MB'")

    class Config:
        from_attributes = True


class BackupCreateResponse(BaseModel):
    file_name: str
    message: str


class StageRestoreResponse(BaseModel):
    file_name: str
    message: str = Field(..., description="The restore is applied on the next startup")


class DatabaseHealthResponse(BaseModel):
    is_healthy: bool
    message: str
    schema_version: str | None = None
    scheduler: dict = Field(default_factory=dict, description="Scheduled backup job status")
