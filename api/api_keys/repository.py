"""
API key persistence (raw SQL).

Keys are deactivated, never deleted, by the API. They disappear only through
the ON DELETE CASCADE of their owning user or client.
"""

from __future__ import annotations

import asyncpg

from core import db


async def insert_api_key(
    conn: asyncpg.Connection,
    *,
    user_id: int,
    key_name: str,
    api_key: str,
    client_id: int | None = None,
) -> dict:
    row = await db.fetch_one(
        conn,
        """
        INSERT INTO api_keys (user_id, client_id, key_name, api_key)
        VALUES ($1, $2, $3, $4)
        RETURNING id, user_id, client_id, key_name, api_key, is_active, created_at, last_used
        """,
        user_id,
        client_id,
        key_name,
        api_key,
    )
    if row is None:
        raise RuntimeError("Failed to insert API key.")
    return row


async def list_api_keys(conn: asyncpg.Connection, *, user_id: int) -> list[dict]:
    return await db.fetch_all(
        conn,
        """
        SELECT id, user_id, client_id, key_name, api_key, is_active, created_at, last_used
        FROM api_keys
        WHERE user_id = $1
        ORDER BY created_at DESC, id DESC
        """,
        user_id,
    )


async def get_api_key(conn: asyncpg.Connection, api_key: str) -> dict | None:
    return await db.fetch_one(
        conn,
        """
        SELECT id, user_id, client_id, key_name, api_key, is_active, created_at, last_used
        FROM api_keys
        WHERE api_key = $1
        """,
        api_key,
    )


async def get_active_key_for_client(conn: asyncpg.Connection, client_id: int) -> str | None:
    return await db.fetch_val(
        conn,
        """
        SELECT api_key
        FROM api_keys
        WHERE client_id = $1
          AND is_active = true
        ORDER BY created_at DESC, id DESC
        LIMIT 1
        """,
        client_id,
    )


async def deactivate_api_key(conn: asyncpg.Connection, key_id: int, *, user_id: int) -> dict | None:
    return await db.fetch_one(
        conn,
        """
        UPDATE api_keys
        SET is_active = false
        WHERE id = $1
          AND user_id = $2
        RETURNING id, user_id, client_id, key_name, api_key, is_active, created_at, last_used
        """,
        key_id,
        user_id,
    )
