"""
Auth dependencies for protected FastAPI routes.
"""

from __future__ import annotations

import asyncpg
from fastapi import Depends, Header, HTTPException, status

from core import db

from . import schemas, service


def _extract_bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header.",
        )

    parts = raw.split(" ", 1)
    if len(parts) != 2:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Authorization header format.",
        )

    scheme, token = parts[0].strip().lower(), parts[1].strip()
    if scheme != "bearer" or not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization must be: Bearer <token>.",
        )
    return token


async def get_bearer_token(authorization: str | None = Header(default=None)) -> str:
    return _extract_bearer_token(authorization)


async def get_identity(
    token: str = Depends(get_bearer_token),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> schemas.Identity:
    return await service.resolve_credential(conn, token)


async def get_session_identity(
    identity: schemas.Identity = Depends(get_identity),
) -> schemas.SessionIdentity:
    if not isinstance(identity, schemas.SessionIdentity):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="This operation requires a user session.",
        )
    return identity


async def get_client_identity(
    identity: schemas.Identity = Depends(get_identity),
) -> schemas.ApiKeyIdentity:
    """
    Client-scoped operations (form sync, submission ingestion) need an API key
    that is linked to a client.
    """
    if not isinstance(identity, schemas.ApiKeyIdentity) or identity.client_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing client context (API key must be linked to a client).",
        )
    return identity
