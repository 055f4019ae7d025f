# tests/conftest.py
# PURPOSE: create a TestClient and override the store dependencies with in-memory stores.

import pytest
from fastapi.testclient import TestClient

from taskwave.api.deps import get_task_store, get_user_store
from taskwave.config import settings
from taskwave.main import app
from taskwave.rate_limit import limiter
from taskwave.store import MemoryStore


@pytest.fixture(autouse=True)
def fast_settings(tmp_path, monkeypatch):
    # Cheapest bcrypt cost and a throwaway data dir for the startup hook
    monkeypatch.setattr(settings, "BCRYPT_ROUNDS", 4)
    monkeypatch.setattr(settings, "DATA_DIR", str(tmp_path / "data"))
    limiter.reset()
    yield


@pytest.fixture()
def user_store():
    return MemoryStore(name="users")


@pytest.fixture()
def task_store():
    return MemoryStore(name="tasks")


@pytest.fixture()
def client(user_store, task_store):
    app.dependency_overrides[get_user_store] = lambda: user_store
    app.dependency_overrides[get_task_store] = lambda: task_store

    # Context manager runs startup/shutdown
    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
