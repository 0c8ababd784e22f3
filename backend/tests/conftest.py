import os
import tempfile
from pathlib import Path
from uuid import uuid4

import pytest

_DB_DIR = Path(tempfile.mkdtemp(prefix="camino_seguro_tests_"))
os.environ["DATABASE_PATH"] = str(_DB_DIR / "test.db")
os.environ["JWT_SECRET"] = "test-secret"
os.environ["ADMIN_PASSWORD"] = "password123"
os.environ["SEED_DEMO_DATA"] = "false"

from fastapi.testclient import TestClient  # noqa: E402

from app.config import ADMIN_EMAIL, AUTHORITY_EMAIL  # noqa: E402
from app.main import app  # noqa: E402


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as c:
        yield c


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def _login(client: TestClient, email: str) -> str:
    resp = client.post("/api/auth/login", json={"email": email, "password": "password123"})
    assert resp.status_code == 200
    return resp.json()["data"]["token"]


@pytest.fixture(scope="session")
def admin_headers(client):
    return bearer(_login(client, ADMIN_EMAIL))


@pytest.fixture(scope="session")
def authority_headers(client):
    return bearer(_login(client, AUTHORITY_EMAIL))


@pytest.fixture
def register(client):
    def _register(name: str = "Ana Quispe") -> dict:
        email = f"{uuid4().hex[:10]}@example.com"
        resp = client.post(
            "/api/auth/register",
            json={"fullName": name, "email": email, "password": "password123"},
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        return {"email": email, "user": data["user"], "headers": bearer(data["token"])}

    return _register
