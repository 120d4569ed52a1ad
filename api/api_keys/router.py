"""
API key management endpoints.
"""

from __future__ import annotations

import asyncpg
from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies
from auth.schemas import SessionIdentity
from core import db

from . import schemas, service

router = APIRouter(prefix="/api-keys")


@router.post("/generate", status_code=201)
async def generate_api_key(
    request: schemas.GenerateApiKeyRequest,
    identity: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> dict:
    """
    Issue an unscoped key owned by the caller. The key string is only returned here.
    """
    return await service.generate(conn, user_id=identity.user_id, key_name=request.key_name)


@router.get("")
async def list_api_keys(
    identity: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> list[dict]:
    return await service.list_keys(conn, user_id=identity.user_id)


@router.post("/{key_id}/deactivate")
async def deactivate_api_key(
    key_id: int,
    identity: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> dict:
    return await service.deactivate(conn, key_id, user_id=identity.user_id)
