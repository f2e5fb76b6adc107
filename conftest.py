import os

# Settings are read at import time, so the test environment is fixed first
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("MEDIA_STORAGE_BACKEND", "local")
os.environ.setdefault("DB_RETRY_DELAY", "0.05")

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.security import get_password_hash
from app.db.database import Database
from app.models.user import User
from app.services.follow import FollowService


@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        MEDIA_STORAGE_BACKEND="local",
        MEDIA_ROOT=str(tmp_path / "media"),
        DB_RETRY_DELAY=0.05,
    )


@pytest_asyncio.fixture
async def database(test_settings):
    """A fresh SQLite database per test."""
    db = Database.from_settings(test_settings)
    await db.init_db()
    yield db
    await db.dispose()


@pytest.fixture
def follow_service(database):
    return FollowService(database, max_retries=3, retry_delay=0.05)


@pytest.fixture
def make_user(database):
    """Insert a user directly through the store and return it."""
    async def _make_user(username: str, password: str = "secret123") -> User:
        user = User(
            username=username,
            email=f"{username}@example.com",
            hashed_password=get_password_hash(password),
        )
        async with database.session() as session:
            session.add(user)
            await session.commit()
            await session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def client(test_settings):
    from app.main import create_app

    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def register(client):
    """Register a user over HTTP and return (user_data, auth_headers)."""
    def _register(username: str, password: str = "secret123"):
        response = client.post(
            "/api/v1/auth/register",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "password": password,
            },
        )
        assert response.status_code == 201, response.text
        data = response.json()["data"]
        # Drop the cookie so each request authenticates with its own header
        client.cookies.clear()
        return data["user"], {"Authorization": f"Bearer {data['access_token']}"}

    return _register
