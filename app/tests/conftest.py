import asyncio
import os
import tempfile

import pytest
import pytest_asyncio

_test_dir = tempfile.mkdtemp(prefix="prompt-library-tests-")

# Settings are read at import time, so the environment has to be ready first
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_test_dir, 'test.db')}"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id.apps.googleusercontent.com"
os.environ["COOKIE_SECURE"] = "false"
os.environ["AUTH_RATE_LIMIT"] = "10000/minute"
os.environ["AUTO_CREATE_TABLES"] = "true"

from fastapi.testclient import TestClient  # noqa: E402

from app.data.database import AsyncSessionLocal, drop_models, init_models  # noqa: E402
from app.main import app  # noqa: E402

DEFAULT_PASSWORD = "Sup3r$ecret"


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client
    asyncio.run(drop_models())


@pytest.fixture
def sign_up(client):
    """Registers a user; the client is then signed in as that user."""

    def _sign_up(email, display_name="Tester", password=DEFAULT_PASSWORD):
        response = client.post(
            "/auth/sign-up",
            json={"display_name": display_name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return response.json()["user"]

    return _sign_up


@pytest.fixture
def sign_in(client):
    def _sign_in(email, password=DEFAULT_PASSWORD):
        response = client.post("/auth/sign-in", json={"email": email, "password": password})
        assert response.status_code == 200, response.text
        return response.json()["user"]

    return _sign_in


@pytest.fixture
def create_prompt(client):
    def _create_prompt(title="Summarize a paper", body="Summarize the attached paper in 5 bullets.", tool="ChatGPT"):
        response = client.post("/prompts", json={"title": title, "body": body, "tool": tool})
        assert response.status_code == 201, response.text
        return response.json()

    return _create_prompt


@pytest_asyncio.fixture
async def db_session():
    await init_models()
    async with AsyncSessionLocal() as session:
        yield session
    await drop_models()
