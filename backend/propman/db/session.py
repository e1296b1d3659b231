"""
Database session management.

WHY: Async database sessions are required for FastAPI's async/await
pattern. Unlike a server database, the SQLite store is a file the
backup service copies and replaces, so the engine has to be disposable
and re-creatable on demand. The Database class owns that lifecycle.
"""

import logging
from pathlib import Path
from typing import AsyncGenerator, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from propman.core.config import settings
from propman.db.encryption import install_connection_pragmas

logger = logging.getLogger(__name__)


class Database:
    """
    Engine and session factory for one store file.

    The engine is created lazily on first use; dispose() closes every
    pooled connection so the file can be copied or moved, and the next
    access creates a fresh engine.
    """

    def __init__(self, path: Path, passphrase: Optional[str] = None, echo: bool = False):
        self.path = Path(path)
        self.passphrase = passphrase
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def url(self) -> str:
        return f"sqlite+aiosqlite:///{self.path}"

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_async_engine(self.url, echo=self.echo)
            install_connection_pragmas(self._engine.sync_engine, self.passphrase)
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        # expire_on_commit=False prevents lazy-loading issues after commit;
        # autoflush=False gives explicit control over when writes hit the store
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    def session(self) -> AsyncSession:
        return self.session_factory()

    def exists(self) -> bool:
        return self.path.exists()

    async def configure(self, path: Optional[Path] = None, passphrase: Optional[str] = None) -> None:
        """Point at a (possibly) different file or key; drops the current engine."""
        await self.dispose()
        if path is not None:
            self.path = Path(path)
        self.passphrase = passphrase

    async def dispose(self) -> None:
        """Close all pooled connections and forget the engine."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.debug(f"Disposed engine for {self.path.name}")
        self._engine = None
        self._session_factory = None


database = Database(settings.database_file, echo=settings.DEBUG)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    WHY: Each request gets its own session; commit on success, rollback
    on any error.

    Yields:
        AsyncSession: Database session for the request
    """
    async with database.session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
