"""
Test configuration and fixtures.

- Repository functions are swapped for an in-memory FakeStore (see fakes.py)
- HTTPX AsyncClient talks to the app through ASGITransport (no lifespan, no DB pool)
- tests/test_postgres.py exercises the real SQL when TEST_DATABASE_URL is set
"""

from __future__ import annotations

import os
from typing import AsyncGenerator

os.environ.setdefault("JWT_SECRET", "test-secret-0123456789abcdef0123456789")
os.environ.setdefault("SIGNUP_CODE", "test-invite")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from core import db  # noqa: E402
from core.rate_limit import limiter  # noqa: E402
from fakes import FakeStore  # noqa: E402
from helpers import bearer, signup  # noqa: E402
from main import app  # noqa: E402


@pytest.fixture
def store(monkeypatch) -> FakeStore:
    fake = FakeStore()
    fake.install(monkeypatch)
    return fake


@pytest.fixture
async def api(store: FakeStore) -> AsyncGenerator[AsyncClient, None]:
    """
    Unauthenticated client for the app, backed by the in-memory store.
    """

    async def _fake_connection():
        yield object()

    app.dependency_overrides[db.get_connection] = _fake_connection
    limiter.reset()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
async def session_headers(api: AsyncClient) -> dict[str, str]:
    data = await signup(api)
    return bearer(data["token"])


@pytest.fixture
async def site(api: AsyncClient, session_headers: dict[str, str]) -> dict:
    """
    A client (WordPress site) plus headers authenticated with its connector key.
    """
    response = await api.post(
        "/clients",
        json={"name": "Acme Dental", "wordpress_url": "https://acme.example/"},
        headers=session_headers,
    )
    assert response.status_code == 201, response.text
    data = response.json()
    return {
        "client_id": data["client_id"],
        "api_key": data["api_key"],
        "headers": bearer(data["api_key"]),
    }
