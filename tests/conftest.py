"""
Pytest configuration and fixtures for testing
"""
import os
import tempfile

# Settings are read at import time, so the environment is prepared first
_TEST_DIR = tempfile.mkdtemp(prefix="tably-tests-")
os.environ["JWT_SECRET_KEY"] = "test-secret-key-for-tably-tests"
os.environ["RATE_LIMIT_PER_MINUTE"] = "0"
os.environ["ADMIN_EMAILS"] = "admin@tably.test"
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/app.db"
os.environ.pop("REDIS_URL", None)
os.environ.pop("RENDER", None)
for _key in ("ENV", "STRIPE_WEBHOOK_SECRET", "PAYPAL_CLIENT_ID", "PAYPAL_CLIENT_SECRET", "AI_API_KEY"):
    os.environ.pop(_key, None)

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import NullPool

from database import Base, get_db
import database_models  # noqa: F401

STRONG_PASSWORD = "Sup3r-Secret-Pass!"


@pytest.fixture
async def test_db(tmp_path):
    """
    Fixture that provides an isolated SQLite database session for each test.

    This fixture:
    - Creates all tables before the test runs
    - Yields a clean AsyncSession for the test
    - Disposes the engine after the test completes
    """
    test_engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path}/test.db",
        echo=False,
        poolclass=NullPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    await test_engine.dispose()


@pytest.fixture
def db_url(tmp_path):
    return f"{tmp_path}/api.db"


@pytest.fixture
def client(db_url):
    """
    TestClient backed by a fresh SQLite file. Startup hooks are not run;
    tables are created here with a synchronous engine.
    """
    from main import app

    sync_engine = create_engine(f"sqlite:///{db_url}")
    Base.metadata.create_all(sync_engine)
    sync_engine.dispose()

    api_engine = create_async_engine(f"sqlite+aiosqlite:///{db_url}", poolclass=NullPool)
    session_factory = async_sessionmaker(api_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    test_client = TestClient(app)
    try:
        yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def run_sql(db_url):
    """Run a raw statement against the API database (e.g. to age an account)."""
    def run(statement, params=None):
        engine = create_engine(f"sqlite:///{db_url}")
        try:
            with engine.begin() as conn:
                result = conn.execute(text(statement), params or {})
                return result.fetchall() if result.returns_rows else None
        finally:
            engine.dispose()
    return run


@pytest.fixture
def signup_user(client):
    """Create an account and return (auth headers, signup body)."""
    def signup(email, password=STRONG_PASSWORD, restaurant_name=None):
        payload = {"email": email, "password": password}
        if restaurant_name:
            payload["restaurant_name"] = restaurant_name
        response = client.post("/api/auth/signup", json=payload)
        assert response.status_code == 200, response.text
        # Auth goes through the Bearer header so several accounts can share a client
        client.cookies.clear()
        body = response.json()
        return {"Authorization": f"Bearer {body['token']}"}, body
    return signup


@pytest.fixture
def owner(client, signup_user):
    headers, _ = signup_user("owner@example.com", restaurant_name="Casa Tably")
    me = client.get("/api/auth/me", headers=headers).json()
    return {"headers": headers, "restaurant_id": me["restaurant_id"], "user_id": int(me["user_id"])}
