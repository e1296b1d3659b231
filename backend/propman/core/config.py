"""Application configuration"""

from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # API
    API_V1_PREFIX: str = "/api"
    PROJECT_NAME: str = "Property Management API"
    VERSION: str = "0.1.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Security
    JWT_SECRET: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_MINUTES: int = 1440  # 24 hours

    # Database
    # WHY: The store is a single SQLite file so it can be copied, backed up
    # and restored as a unit.
    DATABASE_PATH: str = "data/propman.db"
    DESKTOP_MODE: bool = False
    SOFT_DELETE_ENABLED: bool = True
    SCHEMA_VERSION: str = "1.0.0"
    MAX_ORGANIZATION_USERS: int = 0  # 0 = unlimited

    # Backups
    BACKUP_DIRECTORY_NAME: str = "Backups"
    BACKUP_RETENTION_COUNT: int = 10
    BACKUP_COPY_RETRIES: int = 3
    BACKUP_RETRY_DELAY_SECONDS: float = 0.5
    # WHY: SQLite file handles are released asynchronously after the pool
    # is disposed; copying or moving the file too early fails on some platforms.
    HANDLE_RELEASE_DELAY_SECONDS: float = 0.1
    SCHEDULED_BACKUP_ENABLED: bool = False
    SCHEDULED_BACKUP_INTERVAL_HOURS: int = 24

    # Secret store (database passphrase)
    KEYCHAIN_APP_NAME: str = "propman"
    KEYCHAIN_BACKEND: str = "auto"  # auto | secret-tool | file
    KEYCHAIN_FILE_PATH: Optional[str] = None
    KEYCHAIN_FILE_KEY: Optional[str] = None  # Fernet key protecting KEYCHAIN_FILE_PATH

    # CORS
    CORS_ORIGINS: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:5173",
    ]

    @property
    def database_file(self) -> Path:
        """Absolute path of the live store file"""
        return Path(self.DATABASE_PATH).expanduser().resolve()

    @property
    def async_database_url(self) -> str:
        """Get async database URL"""
        return f"sqlite+aiosqlite:///{self.database_file}"

    @property
    def sync_database_url(self) -> str:
        """Get sync database URL (used for probes and PRAGMA maintenance)"""
        return f"sqlite:///{self.database_file}"


settings = Settings()
