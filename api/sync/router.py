"""
Bulk sync endpoints.
"""

from __future__ import annotations

import asyncpg
from fastapi import APIRouter, Depends

from auth import dependencies as auth_dependencies
from auth.schemas import SessionIdentity
from core import db

from . import service

router = APIRouter(prefix="/sync")


@router.post("/client/{client_id}")
async def sync_client(
    client_id: int,
    _: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> dict:
    """
    Pull every entry the client's connector plugin exposes and upsert it.

    Safe to re-run. 502/504 responses mean the site failed or timed out; retrying is up to the caller.
    """
    return await service.bulk_sync(conn, client_id)
