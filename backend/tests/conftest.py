"""
Pytest configuration and fixtures.

WHY: Fixtures provide reusable test setup/teardown logic, reducing
duplication and ensuring consistent test environments.
"""

from pathlib import Path
from typing import AsyncGenerator, Callable

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from propman.core.auth import Principal
from propman.core.config import Settings
from propman.dao.user import UserDAO
from propman.db.session import Database, get_db
from propman.models import Base
from propman.models.organization import OrganizationRole
from propman.models.user import User
from propman.services.organization_service import OrganizationService
from propman.services.user_context import UserContextService
from tests.factories import MembershipFactory, OrganizationFactory, StoreFactory, UserFactory

# SQLite in memory keeps unit tests free of files; lifecycle tests use tmp_path
TEST_ASYNC_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def db_engine():
    """
    Create a test database engine.

    WHY: Function scope ensures each test gets a fresh database state,
    preventing test pollution and ensuring test isolation.
    """
    engine = create_async_engine(TEST_ASYNC_DATABASE_URL, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a test database session configured like the application's.
    """
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with zero delays so file-level tests run fast."""
    return Settings(
        HANDLE_RELEASE_DELAY_SECONDS=0,
        BACKUP_RETRY_DELAY_SECONDS=0,
        SOFT_DELETE_ENABLED=True,
    )


# ============================================================================
# Users and organizations
# ============================================================================


@pytest.fixture
async def owner_a(db_session: AsyncSession) -> User:
    return await UserFactory.create(db_session, email="owner-a@example.com")


@pytest.fixture
async def owner_b(db_session: AsyncSession) -> User:
    return await UserFactory.create(db_session, email="owner-b@example.com")


@pytest.fixture
async def org_a(db_session: AsyncSession, owner_a: User):
    """Organization A; owner_a is its Owner and it is owner_a's active organization."""
    return await OrganizationFactory.create(db_session, owner_a, name="Organization A")


@pytest.fixture
async def org_b(db_session: AsyncSession, owner_b: User):
    """Organization B; owner_b is its Owner and it is owner_b's active organization."""
    return await OrganizationFactory.create(db_session, owner_b, name="Organization B")


@pytest.fixture
async def member_a(db_session: AsyncSession, org_a, owner_a: User) -> User:
    """A plain User-role member of organization A, with A active."""
    user = await UserFactory.create(db_session, email="member-a@example.com")
    await MembershipFactory.grant(
        db_session, org_a, user, OrganizationRole.USER, granted_by=owner_a, activate=True
    )
    return user


@pytest.fixture
def make_user_context(db_session: AsyncSession) -> Callable[..., UserContextService]:
    """
    Factory for per-session tenant contexts.

    Usage:
        context = make_user_context(owner_a)
        anonymous = make_user_context(None)
    """

    def _make(user=None) -> UserContextService:
        principal = Principal.for_user(user.id) if user is not None else Principal.anonymous()
        return UserContextService(principal, UserDAO(db_session), OrganizationService(db_session))

    return _make


# ============================================================================
# HTTP
# ============================================================================


@pytest.fixture
def app():
    from propman.main import create_app

    return create_app()


@pytest.fixture
async def client(app, db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test HTTP client.

    WHY: ASGITransport does not send lifespan events, so the database
    startup sequence is skipped and every request uses the test session.
    """

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()




# ============================================================================
# On-disk stores
# ============================================================================


@pytest.fixture
async def store(tmp_path: Path) -> AsyncGenerator[Database, None]:
    """A Database pointing at a freshly created plaintext store file."""
    database = Database(StoreFactory.create(tmp_path / "propman.db"))
    yield database
    await database.dispose()
