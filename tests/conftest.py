import os

# Must be set before the app modules read their settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["BCRYPT_ROUNDS"] = "10"
os.environ["CREATE_TABLES"] = "false"

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import Base, get_db
from app.main import app
from app.models.enums import ProjectRole, UserRole
from app.services import projects as project_service
from app.services import users as user_service
from app.services.tokens import issue_token, verify_token

PASSWORD = "correct-horse-battery"


@pytest.fixture()
async def session_factory():
    """Fresh in-memory database per test."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    await engine.dispose()


@pytest.fixture()
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture()
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture()
def identity_for():
    """Claims exactly as the guard would resolve them from a fresh token."""
    def _identity(user):
        return verify_token(issue_token(user))
    return _identity


@pytest.fixture()
def make_user(db):
    async def _make(username, role=UserRole.TEAM_MEMBER, password=PASSWORD, **extra):
        user = await user_service.create_account(
            db, username, f"{username}@example.com", password, role=role, **extra
        )
        await db.commit()
        return user
    return _make


@pytest.fixture()
def make_project(db, identity_for):
    async def _make(owner, members=(), name="Apollo"):
        project = await project_service.create_project(db, name, identity_for(owner))
        for member in members:
            await project_service.add_member(db, project.id, member.id, identity_for(owner), role=ProjectRole.MEMBER)
        await db.commit()
        return project
    return _make


@pytest.fixture()
def auth_header():
    def _header(token):
        return {"Authorization": f"Bearer {token}"}
    return _header
