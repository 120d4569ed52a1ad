"""Shared request helpers for the API tests."""

from __future__ import annotations

from httpx import AsyncClient

INVITE_CODE = "test-invite"


async def signup(
    api: AsyncClient,
    *,
    email: str = "owner@agency.test",
    password: str = "s3cret-pass",
    name: str = "Owner",
) -> dict:
    response = await api.post(
        "/auth/signup",
        json={"email": email, "password": password, "name": name, "invite_code": INVITE_CODE},
    )
    assert response.status_code == 200, response.text
    return response.json()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
