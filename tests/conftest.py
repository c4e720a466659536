"""
Shared fixtures: a fresh in-memory SQLite session per test, a stubbed Redis,
an owner with one waitlist, and builders for signup and reward rows.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_SECRET_KEY", "test-secret-key")

import pytest
import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, patch
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.dialects.postgresql import JSONB

import waitlistpro.models  # noqa: F401 - registers every table on Base
from waitlistpro.database import Base
from waitlistpro.models.signup import Signup
from waitlistpro.models.user import User
from waitlistpro.models.waitlist import Waitlist, Reward, DEFAULT_SETTINGS


# SQLite has no JSONB: settings and fraud flags are stored as JSON
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_, compiler, **kw):
    return "JSON"


@pytest.fixture
async def db():
    """Fresh schema on aiosqlite for every test."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def sent_ok():
    return {"message_id": "msg_test_123", "status": "sent", "error": None}


@pytest.fixture
def mock_redis():
    """Mock for async Redis - prevents real Redis calls in tests."""
    with patch("waitlistpro.utils.redis_client.get_redis", new_callable=AsyncMock) as mock:
        redis_mock = AsyncMock()
        redis_mock.incr = AsyncMock(return_value=1)
        redis_mock.expire = AsyncMock(return_value=True)
        redis_mock.ping = AsyncMock(return_value=True)
        mock.return_value = redis_mock
        yield redis_mock


@pytest.fixture
async def owner(db):
    user = User(email="owner@acme.io", password_hash="not-a-real-hash", name="Owner")
    db.add(user)
    await db.flush()
    return user


@pytest.fixture
async def waitlist(db, owner):
    wl = Waitlist(
        owner_id=owner.id,
        name="Acme Beta",
        slug="acme-beta",
        description="Early access",
        settings=dict(DEFAULT_SETTINGS),
    )
    db.add(wl)
    await db.flush()
    return wl


async def make_signup(db, waitlist, position, **overrides) -> Signup:
    """Insert a signup row directly, bypassing the signup flow."""
    fields = {
        "waitlist_id": waitlist.id,
        "email": f"person{position}@example.com",
        "position": position,
        "referral_code": f"code{position:04d}",
        "verify_token": uuid.uuid4().hex,
        "fraud_flags": {},
        "created_at": datetime.now(timezone.utc),
    }
    fields.update(overrides)
    signup = Signup(**fields)
    db.add(signup)
    await db.flush()
    return signup


async def make_reward(db, waitlist, threshold, title=None, description=None) -> Reward:
    reward = Reward(
        waitlist_id=waitlist.id,
        threshold=threshold,
        title=title or f"Reward at {threshold}",
        description=description,
    )
    db.add(reward)
    await db.flush()
    return reward
