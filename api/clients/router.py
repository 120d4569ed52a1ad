"""
Client (WordPress site) endpoints.
"""

from __future__ import annotations

import asyncpg
from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies
from auth.schemas import SessionIdentity
from core import db

from . import schemas, service

router = APIRouter(prefix="/clients")


@router.get("")
async def list_clients(
    _: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> list[dict]:
    return await service.list_clients(conn)


@router.post("", status_code=201)
async def create_client(
    request: schemas.CreateClientRequest,
    identity: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> dict:
    return await service.create_client(conn, request, user_id=identity.user_id)


@router.get("/{client_id}")
async def get_client(
    client_id: int,
    _: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> dict:
    return await service.get_client(conn, client_id)


@router.delete("/{client_id}")
async def delete_client(
    client_id: int,
    _: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> dict:
    return await service.delete_client(conn, client_id)
