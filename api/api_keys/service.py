"""
API key business logic (user-scoped).
"""

from __future__ import annotations

import logging

import asyncpg
from fastapi import HTTPException

from auth import security

from . import repository

logger = logging.getLogger(__name__)


def _public_key(row: dict, *, include_secret: bool = False) -> dict:
    out = {
        "id": int(row["id"]),
        "key_name": str(row["key_name"]),
        "client_id": row.get("client_id"),
        "is_active": bool(row.get("is_active", True)),
        "created_at": row.get("created_at"),
        "last_used": row.get("last_used"),
    }
    if include_secret:
        out["api_key"] = str(row["api_key"])
    return out


async def generate(conn: asyncpg.Connection, *, user_id: int, key_name: str) -> dict:
    key_name = (key_name or "").strip()
    if not key_name:
        raise HTTPException(status_code=400, detail="Key name required.")

    row = await repository.insert_api_key(
        conn,
        user_id=user_id,
        key_name=key_name,
        api_key=security.generate_api_key(),
    )
    logger.info("api_key_issued key_id=%s user_id=%s client_id=None", row["id"], user_id)
    return _public_key(row, include_secret=True)


async def list_keys(conn: asyncpg.Connection, *, user_id: int) -> list[dict]:
    # Keys are shown once at creation; listings only carry a masked hint.
    rows = await repository.list_api_keys(conn, user_id=user_id)
    out = []
    for row in rows:
        item = _public_key(row)
        item["key_hint"] = str(row["api_key"])[:8] + "..."
        out.append(item)
    return out


async def deactivate(conn: asyncpg.Connection, key_id: int, *, user_id: int) -> dict:
    row = await repository.deactivate_api_key(conn, key_id, user_id=user_id)
    if row is None:
        raise HTTPException(status_code=404, detail="API key not found.")
    logger.info("api_key_deactivated key_id=%s user_id=%s", key_id, user_id)
    return _public_key(row)
