"""Pytest configuration and fixtures."""

import os

import pytest

# Keep unit tests off the developer's real database
os.environ.setdefault("WAKEFUL_DB_PATH", "/tmp/wakeful-backend-tests.db")

from app.database import get_memory  # noqa: E402
from app.main import app  # noqa: E402
from app.rate_limit import limiter  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from wakeful import Wakeful  # noqa: E402


@pytest.fixture
def memory(tmp_path):
    """Wakeful facade over a per-test SQLite file."""
    return Wakeful(db_path=tmp_path / "api.db")


@pytest.fixture
def client(memory):
    """Create a test client wired to the per-test store."""
    app.dependency_overrides[get_memory] = lambda: memory
    limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def observation_payload():
    return {
        "agent_id": "agent-a",
        "author": "agent-a",
        "perspective": "self",
        "kind": "project",
        "content": "Shipped the parser rewrite",
        "salience": 40,
    }


@pytest.fixture
def create(client, observation_payload):
    """POST an observation and return its id."""

    def _create(**overrides):
        response = client.post("/observe", json={**observation_payload, **overrides})
        assert response.status_code == 201, response.text
        return response.json()["id"]

    return _create
