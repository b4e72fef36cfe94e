"""Shared fixtures and utilities for tests."""

import os

# Settings are read at import time, so the environment must be set first
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/0")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-min-32-chars-long-for-security")
os.environ.setdefault("JWT_ALGORITHM", "HS256")
os.environ.setdefault("ACCESS_TOKEN_EXPIRE_MINUTES", "60")
os.environ.setdefault("JSON_LOGS", "false")

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import database.models  # noqa: F401
from api.services.bids import BidService
from api.services.completions import CompletionService
from api.services.job_postings import JobPostingFields, JobPostingService
from core.revocation import token_revocations
from core.security import Principal, create_access_token
from database.engine import Base, build_engine
from database.gateway import PersistenceGateway
from database.models.users import User, UserRole


@pytest.fixture
async def engine():
    """Fresh in-memory database per test."""
    engine = build_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def gateway(session_factory):
    return PersistenceGateway(session_factory, statement_timeout=5.0)


@pytest.fixture
async def users(session_factory):
    """Seed two clients, two fixers and an admin; returns Principals by name."""
    seed = [
        ("alice", UserRole.CLIENT),
        ("carol", UserRole.CLIENT),
        ("bob", UserRole.FIXER),
        ("dave", UserRole.FIXER),
        ("root", UserRole.ADMIN),
    ]
    async with session_factory() as session:
        rows = [
            User(username=name, role=role.value, profile_picture=f"https://cdn.test/{name}.png")
            for name, role in seed
        ]
        session.add_all(rows)
        await session.commit()
        return {
            row.username: Principal(id=row.id, role=row.role, name=row.username)
            for row in rows
        }


@pytest.fixture
def client_principal(users):
    return users["alice"]


@pytest.fixture
def other_client(users):
    return users["carol"]


@pytest.fixture
def fixer(users):
    return users["bob"]


@pytest.fixture
def other_fixer(users):
    return users["dave"]


@pytest.fixture
def admin(users):
    return users["root"]


@pytest.fixture
def posting_service(gateway):
    return JobPostingService(gateway)


@pytest.fixture
def bid_service(gateway):
    return BidService(gateway)


@pytest.fixture
def completion_service(gateway):
    return CompletionService(gateway)


@pytest.fixture
def posting_fields():
    """Factory for a valid full field set."""

    def _make(client_id, **overrides):
        values = {
            "client_id": client_id,
            "title": "  Fix leaking sink  ",
            "description": "Kitchen sink drips constantly",
            "location": "Toronto",
            "urgency": "high",
            "date": (datetime.now(timezone.utc) + timedelta(days=3)).isoformat(),
            "min_budget": "100",
            "max_budget": "250.50",
            "notify": True,
            "images": ["https://cdn.test/sink-1.jpg", "https://cdn.test/sink-2.jpg"],
        }
        values.update(overrides)
        return JobPostingFields(**values)

    return _make


@pytest.fixture
def create_posting(posting_service, posting_fields, client_principal):
    """Create a posting owned by alice (or the given principal)."""

    async def _create(principal=None, **overrides):
        owner = principal or client_principal
        return await posting_service.create(owner, posting_fields(owner.id, **overrides))

    return _create


@pytest.fixture
async def revocations():
    """Token revocation list over an in-memory fake Redis."""
    store = {}

    async def _set(key, value, ex=None):
        store[key] = value
        return True

    async def _exists(key):
        return int(key in store)

    redis = AsyncMock()
    redis.set.side_effect = _set
    redis.exists.side_effect = _exists
    redis.store = store

    await token_revocations.init(redis_client=redis)
    yield token_revocations
    await token_revocations.close()


@pytest.fixture
def auth_headers():
    """Bearer header for a principal."""

    def _headers(principal: Principal, **kwargs) -> dict:
        token = create_access_token(principal.id, principal.role, principal.name, **kwargs)
        return {"Authorization": f"Bearer {token}"}

    return _headers
