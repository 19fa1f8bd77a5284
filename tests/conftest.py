import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="lookmate-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_TMP}/test.db")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_TMP, "uploads"))
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("R2_BUCKET", "")

import httpx
import pytest
from asgi_lifespan import LifespanManager

from lookmate.auth import deps as auth_deps
from lookmate.core.db import drop_models, init_models
from lookmate.main import app


@pytest.fixture(autouse=True)
async def clean_db():
    await drop_models()
    await init_models()
    yield


@pytest.fixture
async def client():
    async with LifespanManager(app):
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test") as ac:
            yield ac


@pytest.fixture
def make_user(client: httpx.AsyncClient):
    """Register and log in a user; returns the Authorization headers."""

    async def _make(email: str = "user@example.com", password: str = "secret-pw", display_name: str = "User"):
        res = await client.post(
            "/api/auth/register", json={"email": email, "password": password, "displayName": display_name}
        )
        assert res.status_code == 200, res.text
        res = await client.post("/api/auth/login", json={"email": email, "password": password})
        assert res.status_code == 200, res.text
        return {"Authorization": f"Bearer {res.json()['token']}"}

    return _make


@pytest.fixture
def override_auth():
    user = auth_deps.AuthUser(id="test-user", email="test@example.com", display_name="Tester")
    app.dependency_overrides[auth_deps.get_current_user] = lambda: user
    app.dependency_overrides[auth_deps.get_user_optional] = lambda: user
    yield user
    app.dependency_overrides.pop(auth_deps.get_current_user, None)
    app.dependency_overrides.pop(auth_deps.get_user_optional, None)
