"""
Pytest configuration and fixtures for the CMS content core tests

Every test gets a fresh in-memory SQLite database (aiosqlite, one shared
connection) with the default roles seeded. User fixtures are created in
their own session and handed over detached, so rollbacks inside the code
under test never expire them.
"""

import os
import sys
from collections.abc import AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.future import select
from sqlalchemy.pool import StaticPool

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH119, PTH120

from app.database import Base, enable_sqlite_foreign_keys  # noqa: E402
from app.models.user import Role, User  # noqa: E402
from app.services.user_service import ensure_default_roles  # noqa: E402

# Test database URL (SQLite in-memory for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def test_engine():
    """Create a fresh database for each test function."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        await ensure_default_roles(session)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide the database session the code under test runs on."""
    async with session_factory() as session:
        yield session


async def _create_user(session_factory, username: str, email: str, role_name: str) -> User:
    async with session_factory() as session:
        result = await session.execute(select(Role).where(Role.name == role_name))
        role = result.scalars().first()

        user = User(username=username, email=email, role=role)
        session.add(user)
        await session.commit()
        return user


@pytest.fixture
async def test_user(session_factory) -> User:
    """Create a test user with 'user' role"""
    return await _create_user(session_factory, "testuser", "testuser@example.com", "user")


@pytest.fixture
async def other_user(session_factory) -> User:
    """Create a second plain user"""
    return await _create_user(session_factory, "otheruser", "other@example.com", "user")


@pytest.fixture
async def test_editor(session_factory) -> User:
    """Create a test editor user"""
    return await _create_user(session_factory, "testeditor", "editor@example.com", "editor")


@pytest.fixture
async def test_admin(session_factory) -> User:
    """Create a test admin user"""
    return await _create_user(session_factory, "testadmin", "admin@example.com", "admin")
