"""
Centralized Test Configuration.
"""

import os

# Must be set before the application settings are imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SEED_ON_STARTUP", "false")

import uuid
import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from carlet.app.main import app
from carlet.app.core.config import settings
from carlet.app.core.jwt import create_access_token
from carlet.app.core.redis_client import get_redis
from carlet.app.core.security import get_password_hash
from carlet.app.db.session import Database, get_db
from carlet.app.domain.workflow.stage_registry import StageRegistry
from carlet.app.domain.workflow.stages import Stage
from carlet.app.models.enums import UserRole
from carlet.app.models.user import User
from carlet.app.services.file_storage import FileStorage, get_file_storage
from carlet.seed_data import seed_defaults

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


def enable_sqlite_foreign_keys(engine):
    """Enable foreign key constraints for SQLite."""
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False
    
    async def ping(self):
        return not self._closed
    
    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)
        
    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True
    
    async def delete(self, key):
        if self._closed:
            return 0
        if key in self.store:
            del self.store[key]
            return 1
        return 0
    
    async def exists(self, key):
        if self._closed:
            return 0
        return 1 if key in self.store else 0
        
    async def flushdb(self):
        if not self._closed:
            self.store = {}
        
    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
async def database():
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    db = Database(engine)
    await db.create_all()
    
    yield db
    
    await db.dispose()


@pytest.fixture
async def db_session(database):
    async with database.session() as session:
        yield session


@pytest.fixture
def redis_client():
    return MockRedis()


@pytest.fixture
def storage(tmp_path):
    return FileStorage(str(tmp_path / "uploads"), settings.upload_url_prefix)


@pytest.fixture
async def client(database, redis_client, storage):
    """Async client for testing, wired to the per-test database, Redis and storage."""
    async def override_get_db():
        async with database.session() as session:
            yield session

    async def override_get_redis():
        return redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_file_storage] = lambda: storage
    
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    
    app.dependency_overrides = {}


@pytest.fixture
async def seeded(db_session):
    """Default location ``loc1`` with Check In, Inspection, Repair, Check Out and an admin."""
    await seed_defaults(db_session, settings)
    return await StageRegistry(db_session).get_location(settings.default_location_id)


@pytest.fixture
async def other_location(db_session):
    return await StageRegistry(db_session).create_location(
        name="Second Shop",
        stages=[Stage(id="x1", name="Intake"), Stage(id="x2", name="Done")],
        location_id="loc2",
    )


async def create_test_user(db_session, email, role=UserRole.USER, location_id=None, is_platform_admin=False):
    user = User(
        id=str(uuid.uuid4()),
        email=email,
        full_name=email.split("@")[0].title(),
        hashed_password=get_password_hash("password123"),
        role=role,
        is_platform_admin=is_platform_admin,
        location_id=location_id,
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    return user


def auth_headers(user) -> dict:
    token = create_access_token(data={"sub": user.email, "user_id": user.id, "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin_headers(seeded, db_session):
    admin = await create_test_user(db_session, "boss@example.com", role=UserRole.ADMIN)
    return auth_headers(admin)


@pytest.fixture
async def staff_user(seeded, db_session):
    """Regular user working at loc1."""
    return await create_test_user(db_session, "tech@example.com", location_id=seeded.id)


@pytest.fixture
async def staff_headers(staff_user):
    return auth_headers(staff_user)


@pytest.fixture
def make_user(db_session):
    """Factory creating an active user; returns ``(user, headers)``."""
    async def _make(email, role=UserRole.USER, location_id=None, is_platform_admin=False):
        user = await create_test_user(db_session, email, role, location_id, is_platform_admin)
        return user, auth_headers(user)
    return _make
