import os
from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Settings are read at import time by needled.main
os.environ.setdefault("JWT_SECRET", "test-secret-for-needled-suite")
os.environ["NOTIFICATIONS_ENABLED"] = "false"

import needled.models  # noqa: F401,E402
from needled.core.clock import get_now  # noqa: E402
from needled.core.db import Base  # noqa: E402
from needled.core.security import rate_limiter  # noqa: E402
from needled.core.settings import get_settings  # noqa: E402

# Wednesday
NOW = datetime(2025, 1, 22, 10, 0)

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

DEFAULT_USER = {
    "name": "Alex",
    "email": "alex@example.com",
    "password": "supersecret",
    "start_weight": 100,
    "goal_weight": 80,
    "weight_unit": "kg",
    "medication": "OZEMPIC",
    "injection_day": 2,
    "starting_dosage": 0.5,
    "height": 180,
}


@pytest.fixture
def client(monkeypatch, tmp_path):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'needled.db'}")
    monkeypatch.delenv("CRON_SECRET", raising=False)
    get_settings.cache_clear()
    rate_limiter.reset()

    from needled.main import app

    app.dependency_overrides[get_now] = lambda: NOW
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    get_settings.cache_clear()


def register(client: TestClient, **overrides) -> dict:
    response = client.post("/api/users", json={**DEFAULT_USER, **overrides})
    assert response.status_code == 201, response.text
    return response.json()


def auth_headers(tokens: dict) -> dict:
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest.fixture
def user_tokens(client):
    return register(client)


@pytest.fixture
def headers(user_tokens):
    return auth_headers(user_tokens)


@pytest.fixture
async def async_session():
    engine = create_async_engine(TEST_DB_URL, echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    SessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with SessionLocal() as session:
        yield session

    await engine.dispose()
