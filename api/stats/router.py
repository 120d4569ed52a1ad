"""
Aggregation endpoints.
"""

from __future__ import annotations

import asyncpg
from fastapi import APIRouter, Depends, Query

from auth import dependencies as auth_dependencies
from auth.schemas import SessionIdentity
from core import db

from . import service

router = APIRouter(prefix="/stats")


@router.get("")
async def get_stats(
    days: int = Query(service.DEFAULT_TREND_DAYS, ge=1, le=365),
    _: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> dict:
    return await service.global_stats(conn, days=days)


@router.get("/client/{client_id}")
async def get_client_stats(
    client_id: int,
    _: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> dict:
    return await service.client_stats(conn, client_id)
