from __future__ import annotations

import os
import tempfile
from collections.abc import Callable, Iterator
from pathlib import Path

# Settings are read at import time, so the environment must be in place first.
_TMP = Path(tempfile.mkdtemp(prefix="tally-tests-"))
_DB_PATH = _TMP / "tally_test.db"
os.environ.update(
    {
        "APP_ENV": "test",
        "DATABASE_URL": f"sqlite+aiosqlite:///{_DB_PATH}",
        "SESSION_SECRET": "test-session-secret",
        "BOOTSTRAP_ADMIN_EMAIL": "admin@example.com",
        "BOOTSTRAP_ADMIN_PASSWORD": "admin-password-1",
        "PASSWORD_HASH_METHOD": "pbkdf2:sha256:1000",
        "UPLOAD_DIR": str(_TMP / "uploads"),
        "IMPORT_START_DELAY_SECONDS": "0",
    }
)

import pytest  # noqa: E402
from fastapi import FastAPI  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from tally.main import create_app  # noqa: E402

ADMIN_EMAIL = "admin@example.com"
ADMIN_PASSWORD = "admin-password-1"


def login(client: TestClient, email: str, password: str) -> dict:
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]


@pytest.fixture()
def app() -> FastAPI:
    """A fresh app over an empty database (the lifespan recreates the schema)."""
    _DB_PATH.unlink(missing_ok=True)
    return create_app()


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture()
def admin_client(client: TestClient) -> TestClient:
    login(client, ADMIN_EMAIL, ADMIN_PASSWORD)
    return client


@pytest.fixture()
def make_division(admin_client: TestClient) -> Callable[..., dict]:
    def _make(name: str = "North", **extra) -> dict:
        response = admin_client.post("/api/divisions", json={"name": name, **extra})
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture()
def make_user(app: FastAPI, admin_client: TestClient) -> Callable[..., TestClient]:
    """Create a user through the admin API and return a client signed in as them."""
    counter = {"n": 0}

    def _make(role: str = "user", division_ids: list[str] | None = None) -> TestClient:
        counter["n"] += 1
        email = f"{role}{counter['n']}@example.com"
        response = admin_client.post(
            "/api/users",
            json={
                "email": email,
                "firstName": role.title(),
                "lastName": f"Tester{counter['n']}",
                "role": role,
                "divisionIds": division_ids or [],
            },
        )
        assert response.status_code == 201, response.text
        user_client = TestClient(app)
        login(user_client, email, response.json()["data"]["tempPassword"])
        return user_client

    return _make


@pytest.fixture()
def csv_bytes() -> Callable[..., bytes]:
    def _build(*lines: str) -> bytes:
        return ("\n".join(lines) + "\n").encode("utf-8")

    return _build
