"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.core.redis_client import get_redis
from backend.app.core.jwt import create_identity_token
from backend.app.domain.store import StoreContext
from backend.app.domain.role_manager import RoleManager
from backend.app.domain.rider_lifecycle import RiderLifecycle
from backend.app.domain.parcel_lifecycle import ParcelLifecycle
from backend.app.domain.payment_recorder import PaymentRecorder
from backend.app.models.base import new_id
from backend.app.models.enums import UserRole
from backend.app.models.user import User
from backend.app.services.role_cache import RoleCache
import backend.app.core.redis_client as redis_client_module

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


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
        
    async def set(self, key, value, ex=None, nx=False):
        if self._closed:
            return False
        if nx and key in self.store:
            return None
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


class UnreachableRedis:
    """Every call fails the way a dropped Redis connection does."""
    
    async def _fail(self, *args, **kwargs):
        raise RedisConnectionError("Connection refused")
    
    ping = get = set = delete = exists = _fail


@pytest.fixture
def redis_client():
    return MockRedis()


@pytest.fixture
def unreachable_redis():
    return UnreachableRedis()


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    
    yield test_engine
    
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
def apply_overrides(session_factory, redis_client):
    """Point the app at the test database and the mock Redis."""
    original_client = redis_client_module.redis_client
    redis_client_module.redis_client = redis_client
    
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    yield
    
    # Restore and clear
    app.dependency_overrides = {}
    redis_client_module.redis_client = original_client


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers():
    """Build a bearer header for a verified identity."""
    def _headers(email: str) -> dict:
        return {"Authorization": f"Bearer {create_identity_token(email)}"}
    return _headers


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def fetch(session_factory):
    """Read an entity through a separate session, bypassing any identity map."""
    async def _fetch(model, entity_id):
        async with session_factory() as session:
            return await session.get(model, entity_id)
    return _fetch


@pytest.fixture
def make_user(session_factory):
    """Insert a user directly into the Directory Store."""
    async def _make(email: str, role: UserRole = UserRole.USER) -> User:
        async with session_factory() as session:
            user = User(id=new_id(), email=email, role=role)
            session.add(user)
            await session.commit()
            return user
    return _make


# Domain components sharing one session, as a request would
@pytest.fixture
def store(db_session):
    return StoreContext(db_session)


@pytest.fixture
def roles(store, redis_client):
    return RoleManager(store, RoleCache(redis_client))


@pytest.fixture
def riders(store, roles):
    return RiderLifecycle(store, roles)


@pytest.fixture
def parcels(store, roles):
    return ParcelLifecycle(store, roles)


@pytest.fixture
def payments(store, roles):
    return PaymentRecorder(store, roles)


@pytest.fixture
def parcel_data():
    return {
        "title": "Birthday gift",
        "parcel_type": "non-document",
        "weight_kg": 1.5,
        "sender_name": "U Sender",
        "sender_district": "D2",
        "receiver_name": "R Receiver",
        "receiver_contact": "+8801000000000",
        "destination_district": "D1",
        "delivery_cost": 150.0,
    }


@pytest.fixture
def active_rider(riders, make_user):
    """Apply and approve a rider in district D1."""
    async def _make(email: str = "a@x.com", name: str = "A", district: str = "D1"):
        await make_user(email)
        rider = await riders.apply({"name": name, "email": email, "district": district})
        return await riders.decide(rider.id, "active")
    return _make
