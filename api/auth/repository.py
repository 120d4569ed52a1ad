"""
Auth persistence helpers.
"""

from __future__ import annotations

import asyncpg

from core import db


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def create_user(
    conn: asyncpg.Connection,
    *,
    email: str,
    password_hash: str,
    name: str | None = None,
) -> dict:
    """
    Insert a user. Raises asyncpg.UniqueViolationError on a duplicate email.
    """
    row = await db.fetch_one(
        conn,
        """
        INSERT INTO users (email, password_hash, name)
        VALUES ($1, $2, $3)
        RETURNING id, email, name, created_at, updated_at
        """,
        normalize_email(email),
        password_hash,
        name,
    )
    if row is None:
        raise RuntimeError("Failed to create user.")
    return row


async def get_user_by_email(conn: asyncpg.Connection, email: str) -> dict | None:
    return await db.fetch_one(
        conn,
        """
        SELECT id, email, name, created_at, updated_at, password_hash
        FROM users
        WHERE lower(email) = lower($1)
        """,
        normalize_email(email),
    )


async def get_user_by_id(conn: asyncpg.Connection, user_id: int) -> dict | None:
    return await db.fetch_one(
        conn,
        """
        SELECT id, email, name, created_at, updated_at
        FROM users
        WHERE id = $1
        """,
        user_id,
    )


async def update_user_profile(
    conn: asyncpg.Connection,
    user_id: int,
    *,
    name: str | None = None,
    email: str | None = None,
) -> dict | None:
    """
    Partial update: NULL arguments keep the stored value.
    Raises asyncpg.UniqueViolationError when the new email is taken.
    """
    return await db.fetch_one(
        conn,
        """
        UPDATE users
        SET name = COALESCE($1, name),
            email = COALESCE($2, email),
            updated_at = now()
        WHERE id = $3
        RETURNING id, email, name, created_at, updated_at
        """,
        name,
        normalize_email(email) if email else None,
        user_id,
    )
