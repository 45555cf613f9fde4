"""Shared fixtures: a fresh seeded app per test and logged-in clients.

Invariants:
    - Every test gets its own Store, so nothing leaks between tests
    - Password hashing uses a low iteration count to keep the suite fast
"""

import pytest
from fastapi.testclient import TestClient

from task_manager_api.app.core.config import Settings
from task_manager_api.app.core.security import CredentialService
from task_manager_api.app.core.store import Store
from task_manager_api.app.main import create_app

TEST_SECRET = "test-secret"
TEST_ITERATIONS = 1000

ADMIN_EMAIL = "admin@test.com"
ADMIN_PASSWORD = "admin123"
USER_EMAIL = "user@test.com"
USER_PASSWORD = "user123"


@pytest.fixture
def settings():
    return Settings(
        secret_key=TEST_SECRET,
        password_hash_iterations=TEST_ITERATIONS,
        seed_demo_data=True,
        log_level="WARNING",
        log_file="",
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def store(app) -> Store:
    return app.state.store


@pytest.fixture
def credentials() -> CredentialService:
    return CredentialService(TEST_SECRET, hash_iterations=TEST_ITERATIONS)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def login(client, email, password) -> str:
    response = client.post("/api/v1/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["data"]["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client):
    return bearer(login(client, ADMIN_EMAIL, ADMIN_PASSWORD))


@pytest.fixture
def user_headers(client):
    return bearer(login(client, USER_EMAIL, USER_PASSWORD))


@pytest.fixture
def admin(store):
    return store.get_user_by_email(ADMIN_EMAIL)


@pytest.fixture
def user(store):
    return store.get_user_by_email(USER_EMAIL)


def register(client, name="Other User", email="other@test.com", password="secret1", **extra):
    payload = {"name": name, "email": email, "password": password, **extra}
    response = client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()["data"]
