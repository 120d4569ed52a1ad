"""
Form registry + submission persistence.
This module is where forms/submissions SQL lives.

Every write that can race with another request is a single
INSERT ... ON CONFLICT statement; uniqueness is enforced by the schema:
- forms: UNIQUE (client_id, form_id, form_plugin)
- submissions: UNIQUE (form_id, external_id) WHERE external_id IS NOT NULL
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import asyncpg

from core import db


def _submission_row(row: dict[str, Any]) -> dict[str, Any]:
    row["submission_data"] = db.json_value(row.get("submission_data"))
    return row


async def upsert_form(
    conn: asyncpg.Connection,
    *,
    client_id: int,
    external_form_id: str,
    form_name: str,
    plugin: str,
    schema: Any = None,
) -> int:
    """
    Insert a form or overwrite name + schema of the existing one. Returns the form id.
    """
    form_id = await db.fetch_val(
        conn,
        """
        INSERT INTO forms (client_id, form_id, form_name, form_plugin, form_schema)
        VALUES ($1, $2, $3, $4, $5::jsonb)
        ON CONFLICT (client_id, form_id, form_plugin)
        DO UPDATE SET
          form_name = EXCLUDED.form_name,
          form_schema = EXCLUDED.form_schema,
          updated_at = now()
        RETURNING id
        """,
        client_id,
        external_form_id,
        form_name,
        plugin,
        db.json_arg(schema),
    )
    if form_id is None:
        raise RuntimeError("Failed to upsert form.")
    return int(form_id)


async def upsert_form_name(
    conn: asyncpg.Connection,
    *,
    client_id: int,
    external_form_id: str,
    form_name: str,
    plugin: str,
) -> int | None:
    """
    Insert a form or refresh only its name; an existing schema is left alone.
    """
    form_id = await db.fetch_val(
        conn,
        """
        INSERT INTO forms (client_id, form_id, form_name, form_plugin, form_schema)
        VALUES ($1, $2, $3, $4, NULL)
        ON CONFLICT (client_id, form_id, form_plugin)
        DO UPDATE SET
          form_name = EXCLUDED.form_name,
          updated_at = now()
        RETURNING id
        """,
        client_id,
        external_form_id,
        form_name,
        plugin,
    )
    return int(form_id) if form_id is not None else None


async def upsert_form_schema(
    conn: asyncpg.Connection,
    *,
    client_id: int,
    external_form_id: str,
    form_name: str,
    plugin: str,
    schema: Any = None,
) -> int:
    """
    Discovery merge: insert a form, or refresh only the schema of a known one
    (names chosen by the connector plugin win).
    """
    form_id = await db.fetch_val(
        conn,
        """
        INSERT INTO forms (client_id, form_id, form_name, form_plugin, form_schema)
        VALUES ($1, $2, $3, $4, $5::jsonb)
        ON CONFLICT (client_id, form_id, form_plugin)
        DO UPDATE SET
          form_schema = EXCLUDED.form_schema,
          updated_at = now()
        RETURNING id
        """,
        client_id,
        external_form_id,
        form_name,
        plugin,
        db.json_arg(schema),
    )
    if form_id is None:
        raise RuntimeError("Failed to upsert discovered form.")
    return int(form_id)


async def find_form_id(
    conn: asyncpg.Connection,
    *,
    client_id: int,
    external_form_id: str,
    plugin: str,
) -> int | None:
    form_id = await db.fetch_val(
        conn,
        """
        SELECT id
        FROM forms
        WHERE client_id = $1
          AND form_id = $2
          AND form_plugin = $3
        """,
        client_id,
        external_form_id,
        plugin,
    )
    return int(form_id) if form_id is not None else None


async def get_form(conn: asyncpg.Connection, form_id: int) -> dict[str, Any] | None:
    row = await db.fetch_one(
        conn,
        """
        SELECT id, client_id, form_id, form_name, form_plugin, form_schema, created_at, updated_at
        FROM forms
        WHERE id = $1
        """,
        form_id,
    )
    if row is not None:
        row["form_schema"] = db.json_value(row.get("form_schema"))
    return row


async def list_forms_for_client(conn: asyncpg.Connection, client_id: int) -> list[dict[str, Any]]:
    return await db.fetch_all(
        conn,
        """
        SELECT id, form_id, form_name, form_plugin, updated_at
        FROM forms
        WHERE client_id = $1
        ORDER BY form_name, id
        """,
        client_id,
    )


async def delete_form(conn: asyncpg.Connection, form_id: int) -> bool:
    """
    Delete a form; its submissions go with it (ON DELETE CASCADE).
    """
    status = await db.execute(conn, "DELETE FROM forms WHERE id = $1", form_id)
    return db.affected_rows(status) > 0


async def insert_submission(
    conn: asyncpg.Connection,
    *,
    form_id: int,
    submission_data: dict[str, Any],
    submitted_at: datetime,
) -> int:
    """
    Plain insert; no dedup key, so every call adds a row.
    """
    submission_id = await db.fetch_val(
        conn,
        """
        INSERT INTO submissions (form_id, submission_data, submitted_at)
        VALUES ($1, $2::jsonb, $3)
        RETURNING id
        """,
        form_id,
        db.json_arg(submission_data),
        submitted_at,
    )
    if submission_id is None:
        raise RuntimeError("Failed to insert submission.")
    return int(submission_id)


async def upsert_submission(
    conn: asyncpg.Connection,
    *,
    form_id: int,
    external_id: str,
    submission_data: dict[str, Any],
    submitted_at: datetime,
) -> tuple[int, bool]:
    """
    Idempotent write keyed on (form_id, external_id).

    Returns (submission_id, inserted). `inserted` is False when an existing row
    was refreshed with the new payload/timestamp.
    """
    row = await db.fetch_one(
        conn,
        """
        INSERT INTO submissions (form_id, submission_data, submitted_at, external_id)
        VALUES ($1, $2::jsonb, $3, $4)
        ON CONFLICT (form_id, external_id) WHERE external_id IS NOT NULL
        DO UPDATE SET
          submission_data = EXCLUDED.submission_data,
          submitted_at = EXCLUDED.submitted_at
        RETURNING id, (xmax = 0) AS inserted
        """,
        form_id,
        db.json_arg(submission_data),
        submitted_at,
        external_id,
    )
    if row is None:
        raise RuntimeError("Failed to upsert submission.")
    return int(row["id"]), bool(row["inserted"])


async def list_submissions(conn: asyncpg.Connection, form_id: int) -> list[dict[str, Any]]:
    rows = await db.fetch_all(
        conn,
        """
        SELECT id, submission_data, submitted_at, external_id
        FROM submissions
        WHERE form_id = $1
        ORDER BY submitted_at DESC NULLS LAST, id DESC
        """,
        form_id,
    )
    return [_submission_row(row) for row in rows]


async def delete_submission(conn: asyncpg.Connection, submission_id: int) -> bool:
    status = await db.execute(conn, "DELETE FROM submissions WHERE id = $1", submission_id)
    return db.affected_rows(status) > 0


async def list_recent_submissions(conn: asyncpg.Connection, *, days: int, limit: int = 50) -> list[dict[str, Any]]:
    rows = await db.fetch_all(
        conn,
        """
        SELECT s.id, s.submitted_at, s.submission_data,
               f.id AS form_id, f.form_name, f.form_plugin,
               c.id AS client_id, c.name AS client_name
        FROM submissions s
        JOIN forms f ON f.id = s.form_id
        JOIN clients c ON c.id = f.client_id
        WHERE s.submitted_at >= now() - make_interval(days => $1::int)
        ORDER BY s.submitted_at DESC, s.id DESC
        LIMIT $2
        """,
        days,
        limit,
    )
    return [_submission_row(row) for row in rows]
