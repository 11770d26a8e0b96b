import os
import tempfile

# Must be in place before radiocalico.config is imported
_TMP_DIR = tempfile.mkdtemp(prefix="radiocalico-tests-")
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["SECRET_KEY"] = "test-secret-key-with-at-least-32-characters"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_DIR"] = ""
os.environ["PUBLIC_DIR"] = ""

import pytest
from httpx import ASGITransport, AsyncClient

from radiocalico.database import AsyncSessionLocal, Base, engine, init_models
from radiocalico.main import app
from radiocalico.models.user_model import User
from radiocalico.utils.token_utils import create_access_token


@pytest.fixture(autouse=True)
async def database():
    await init_models()
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def session():
    async with AsyncSessionLocal() as s:
        yield s


@pytest.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c


@pytest.fixture
def auth_headers():
    """Bearer headers for a user id without going through registration."""

    def _headers(user_id: int, username: str = "tester") -> dict:
        token = create_access_token(User(id=user_id, username=username))
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def register(client):
    async def _register(username: str, password: str = "secret123", email: str = None):
        res = await client.post(
            "/api/auth/register",
            json={
                "username": username,
                "email": email or f"{username}@example.com",
                "password": password,
            },
        )
        assert res.status_code == 200, res.text
        body = res.json()
        return body["user"], {"Authorization": f"Bearer {body['token']}"}

    return _register
