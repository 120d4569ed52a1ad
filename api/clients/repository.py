"""
Client persistence (raw SQL).
"""

from __future__ import annotations

import asyncpg

from core import db


async def create_client_with_key(
    conn: asyncpg.Connection,
    *,
    user_id: int,
    name: str,
    wordpress_url: str,
    api_key: str,
    key_name: str,
    wordpress_username: str | None = None,
    wordpress_app_password: str | None = None,
) -> tuple[dict, dict]:
    """
    Insert a client + its connector API key in a single transaction.

    Returns (client_row, api_key_row). Either both rows exist afterwards or neither.
    """
    async with conn.transaction():
        client_row = await conn.fetchrow(
            """
            INSERT INTO clients (name, wordpress_url, wordpress_username, wordpress_app_password, created_by)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING id, name, wordpress_url, created_by, created_at, updated_at
            """,
            name,
            wordpress_url,
            wordpress_username,
            wordpress_app_password,
            user_id,
        )
        if client_row is None:
            raise RuntimeError("Failed to insert client.")

        key_row = await conn.fetchrow(
            """
            INSERT INTO api_keys (user_id, client_id, key_name, api_key)
            VALUES ($1, $2, $3, $4)
            RETURNING id, client_id, key_name, api_key, created_at
            """,
            user_id,
            int(client_row["id"]),
            key_name,
            api_key,
        )
        if key_row is None:
            raise RuntimeError("Failed to insert API key.")

        return dict(client_row), dict(key_row)


async def list_clients(conn: asyncpg.Connection) -> list[dict]:
    return await db.fetch_all(
        conn,
        """
        SELECT id, name, wordpress_url, created_by, created_at, updated_at
        FROM clients
        ORDER BY created_at DESC, id DESC
        """,
    )


async def get_client(conn: asyncpg.Connection, client_id: int) -> dict | None:
    return await db.fetch_one(
        conn,
        """
        SELECT id, name, wordpress_url, created_by, created_at, updated_at
        FROM clients
        WHERE id = $1
        """,
        client_id,
    )


async def get_client_with_credentials(conn: asyncpg.Connection, client_id: int) -> dict | None:
    """
    Like get_client, plus the WordPress credentials used for discovery. Never
    return this row to API callers.
    """
    return await db.fetch_one(
        conn,
        """
        SELECT id, name, wordpress_url, created_by, created_at, updated_at, wordpress_username, wordpress_app_password
        FROM clients
        WHERE id = $1
        """,
        client_id,
    )


async def delete_client(conn: asyncpg.Connection, client_id: int) -> bool:
    """
    Delete a client. Forms, their submissions and the client's API keys go with
    it through ON DELETE CASCADE.
    """
    status = await db.execute(conn, "DELETE FROM clients WHERE id = $1", client_id)
    return db.affected_rows(status) > 0
