"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator, Generator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tasktracker.core.config import Settings
from tasktracker.core.memory_store import InMemoryTaskStore
from tasktracker.core.sqlite_store import SqliteTaskStore
from tasktracker.core.store import TaskStore
from tasktracker.main import create_app


API_TOKEN = "test-token-12345"


@pytest.fixture(params=["memory", "sqlite"])
async def store(request: pytest.FixtureRequest, tmp_path: Path) -> AsyncGenerator[TaskStore]:
    """Provide a fresh task store for each engine."""
    if request.param == "memory":
        task_store: TaskStore = InMemoryTaskStore()
    else:
        task_store = await SqliteTaskStore.connect(str(tmp_path / "tasks.db"))

    yield task_store

    await task_store.close()


@pytest.fixture
def memory_store() -> InMemoryTaskStore:
    """Provide a fresh in-memory task store."""
    return InMemoryTaskStore()


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        api_token=API_TOKEN,
        store_backend="memory",
        logfire_token=None,
        environment="test",
    )


@pytest.fixture
def client(test_settings: Settings, memory_store: InMemoryTaskStore) -> Generator[TestClient]:
    """Test client for an app backed by the in-memory store."""
    with TestClient(create_app(app_settings=test_settings, store=memory_store)) as test_client:
        yield test_client


@pytest.fixture
def sqlite_client(test_settings: Settings, tmp_path: Path) -> Generator[TestClient]:
    """Test client for an app that opens its own SQLite store."""
    app_settings = test_settings.model_copy(
        update={"store_backend": "sqlite", "sqlite_db_path": str(tmp_path / "api.db")}
    )
    with TestClient(create_app(app_settings=app_settings)) as test_client:
        yield test_client


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Authorization header carrying the test API token."""
    return {"Authorization": f"Bearer {API_TOKEN}"}
