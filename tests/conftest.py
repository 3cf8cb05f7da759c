import os

# Configuration must be in place before the app modules are imported.
os.environ["JWT_SECRET"] = "test-secret-key-that-is-long-enough-for-hs256"
os.environ["AUTH_DATABASE_URL"] = "sqlite://"
os.environ["FARM_DATABASE_URL"] = "sqlite://"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["SEED_DEMO_DATA"] = "true"
os.environ["DEMO_PASSWORD"] = "demo123"
os.environ["RATE_LIMIT_PER_MINUTE"] = "100000"

import pytest
from fastapi.testclient import TestClient

from apps.api.main import app
from auth.cache_manager import cache_manager
from auth.session import AuthUser, SessionRole

DEMO_PASSWORD = "demo123"


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def clear_cache():
    cache_manager.clear()
    yield
    cache_manager.clear()


@pytest.fixture
def login(client):
    def _login(email: str, password: str = DEMO_PASSWORD) -> dict:
        response = client.post("/api/auth/login", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()
    return _login


@pytest.fixture
def auth_headers(login):
    def _headers(email: str) -> dict:
        return {"Authorization": f"Bearer {login(email)['access_token']}"}
    return _headers


def make_user(permissions=(), role_name=None, **flags) -> AuthUser:
    roles = [SessionRole(role_id=1, name=role_name, permissions=list(permissions))] if role_name else []
    return AuthUser(
        user_id=flags.pop("user_id", 10),
        email="user@example.com",
        permissions=list(permissions),
        roles=roles,
        **flags
    )
