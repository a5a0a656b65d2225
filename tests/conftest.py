# /tests/conftest.py

import asyncio
import itertools
import os
import tempfile

import pytest

# Point the app at a throwaway SQLite file BEFORE any app module is imported.
_TEST_DIR = tempfile.mkdtemp(prefix="ablespace-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ.setdefault("SECRET_KEY", "test-secret")

from fastapi.testclient import TestClient  # noqa: E402

from app.database import engine, Base  # noqa: E402
from app.main import app  # noqa: E402

_counter = itertools.count(1)


async def _reset_schema():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


@pytest.fixture
def client():
    """A TestClient over a freshly emptied database."""
    asyncio.run(_reset_schema())
    with TestClient(app) as test_client:
        yield test_client


def auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _register(client, payload):
    response = client.post("/api/users/register", json=payload)
    assert response.status_code == 201, response.text
    # Registration sets a cookie; drop it so every request names its user explicitly
    client.cookies.clear()
    return response.json()


@pytest.fixture
def make_teacher(client):
    def _make(name="Teacher", branches_handled=("CSE",), branch="CSE"):
        n = next(_counter)
        data = _register(client, {
            "name": f"{name} {n}",
            "email": f"teacher{n}@example.com",
            "password": "secret123",
            "role": "teacher",
            "branch": branch,
            "branches_handled": list(branches_handled),
        })
        return {"id": data["id"], "token": data["token"], "headers": auth(data["token"]), "name": data["name"]}
    return _make


@pytest.fixture
def make_student(client):
    def _make(name="Student", branch="CSE"):
        n = next(_counter)
        data = _register(client, {
            "name": f"{name} {n}",
            "email": f"student{n}@example.com",
            "password": "secret123",
            "role": "student",
            "branch": branch,
            "year": 2,
            "section": "A",
            "roll_number": f"ROLL{n:04d}",
        })
        return {"id": data["id"], "token": data["token"], "headers": auth(data["token"]), "name": data["name"]}
    return _make


@pytest.fixture
def make_task(client):
    def _make(teacher, **fields):
        body = {"title": "Essay"}
        body.update(fields)
        response = client.post("/api/academic/tasks", json=body, headers=teacher["headers"])
        assert response.status_code == 201, response.text
        return response.json()
    return _make
