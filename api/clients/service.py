"""
Client business logic.
"""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

import asyncpg
from fastapi import HTTPException

from auth import security

from . import repository, schemas

logger = logging.getLogger(__name__)


def _public_client(row: dict) -> dict:
    return {
        "id": int(row["id"]),
        "name": str(row["name"]),
        "wordpress_url": str(row["wordpress_url"]),
        "created_at": row.get("created_at"),
    }


def normalize_wordpress_url(url: str) -> str:
    url = (url or "").strip().rstrip("/")
    parts = urlsplit(url)
    if parts.scheme not in {"http", "https"} or not parts.netloc:
        raise HTTPException(status_code=400, detail="wordpress_url must be an absolute http(s) URL.")
    return url


async def create_client(
    conn: asyncpg.Connection,
    payload: schemas.CreateClientRequest,
    *,
    user_id: int,
) -> dict:
    """
    Create a client and issue its connector API key atomically.

    The key is returned once here and cannot be read back later.
    """
    wordpress_url = normalize_wordpress_url(payload.wordpress_url)
    api_key = security.generate_api_key()

    client_row, key_row = await repository.create_client_with_key(
        conn,
        user_id=user_id,
        name=payload.name,
        wordpress_url=wordpress_url,
        api_key=api_key,
        key_name=f"{payload.name}-connector",
        wordpress_username=payload.wordpress_username or None,
        wordpress_app_password=payload.wordpress_app_password or None,
    )
    logger.info(
        "client_created client_id=%s user_id=%s key_id=%s",
        client_row["id"],
        user_id,
        key_row["id"],
    )
    return {
        "client_id": int(client_row["id"]),
        "name": str(client_row["name"]),
        "wordpress_url": str(client_row["wordpress_url"]),
        "api_key": str(key_row["api_key"]),
    }


async def list_clients(conn: asyncpg.Connection) -> list[dict]:
    rows = await repository.list_clients(conn)
    return [_public_client(row) for row in rows]


async def get_client(conn: asyncpg.Connection, client_id: int) -> dict:
    row = await repository.get_client(conn, client_id)
    if row is None:
        raise HTTPException(status_code=404, detail="Client not found.")
    return _public_client(row)


async def delete_client(conn: asyncpg.Connection, client_id: int) -> dict:
    deleted = await repository.delete_client(conn, client_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Client not found.")
    logger.info("client_deleted client_id=%s", client_id)
    return {"success": True, "client_id": client_id}
