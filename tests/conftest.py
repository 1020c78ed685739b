"""
Test configuration for teamchat
"""
import os

# Must be set before teamchat.config is imported
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from teamchat.auth.passwords import hash_password
from teamchat.config import settings
from teamchat.database import Database
from teamchat.models.user import User
from teamchat.services import ChatServices, Connection, ConnectionManager


@pytest_asyncio.fixture
async def database(tmp_path):
    database = Database()
    await database.connect(str(tmp_path / "chat.db"))
    yield database
    await database.close()


@pytest.fixture
def manager():
    return ConnectionManager()


@pytest_asyncio.fixture
async def services(database, manager):
    return ChatServices(database, manager)


@pytest.fixture
def make_user(database):
    async def _make_user(username: str, password: str = "secret") -> User:
        user_id = await database.create_user(username, hash_password(password), "#3b82f6")
        return User(id=user_id, username=username, color="#3b82f6")
    return _make_user


@pytest_asyncio.fixture
async def alice(make_user):
    return await make_user("alice")


@pytest_asyncio.fixture
async def bob(make_user):
    return await make_user("bob")


@pytest_asyncio.fixture
async def carol(make_user):
    return await make_user("carol")


@pytest.fixture
def connect(manager):
    """Register an in-memory connection (no socket) for a user."""
    def _connect(user: User) -> Connection:
        connection = Connection(None, user)
        manager.connect(connection)
        return connection
    return _connect


@pytest.fixture
def client(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "SQLITE_DB_PATH", str(tmp_path / "api.db"))
    from main import app
    with TestClient(app) as test_client:
        yield test_client
