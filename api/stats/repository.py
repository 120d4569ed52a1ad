"""
Aggregation queries (read-only). Day and month boundaries are UTC.
"""

from __future__ import annotations

import asyncpg

from core import db


async def count_submissions(conn: asyncpg.Connection, *, client_id: int | None = None) -> int:
    value = await db.fetch_val(
        conn,
        """
        SELECT count(*)
        FROM submissions s
        JOIN forms f ON f.id = s.form_id
        WHERE ($1::bigint IS NULL OR f.client_id = $1::bigint)
        """,
        client_id,
    )
    return int(value or 0)


async def count_submissions_in_month(
    conn: asyncpg.Connection,
    *,
    months_ago: int = 0,
    client_id: int | None = None,
) -> int:
    value = await db.fetch_val(
        conn,
        """
        SELECT count(*)
        FROM submissions s
        JOIN forms f ON f.id = s.form_id
        WHERE ($2::bigint IS NULL OR f.client_id = $2::bigint)
          AND date_trunc('month', s.submitted_at AT TIME ZONE 'UTC')
              = date_trunc('month', (now() AT TIME ZONE 'UTC') - make_interval(months => $1::int))
        """,
        months_ago,
        client_id,
    )
    return int(value or 0)


async def count_clients(conn: asyncpg.Connection) -> int:
    return int(await db.fetch_val(conn, "SELECT count(*) FROM clients") or 0)


async def count_forms(conn: asyncpg.Connection) -> int:
    return int(await db.fetch_val(conn, "SELECT count(DISTINCT id) FROM forms") or 0)


async def daily_counts(conn: asyncpg.Connection, *, days: int) -> list[dict]:
    """
    One row per day for the trailing `days` days (today included), oldest first.
    Days without submissions are zero-filled by the generate_series join.
    """
    return await db.fetch_all(
        conn,
        """
        WITH days AS (
          SELECT generate_series(
            (now() AT TIME ZONE 'UTC')::date - ($1::int - 1),
            (now() AT TIME ZONE 'UTC')::date,
            interval '1 day'
          )::date AS day
        )
        SELECT d.day, count(s.id) AS count
        FROM days d
        LEFT JOIN submissions s
          ON (s.submitted_at AT TIME ZONE 'UTC')::date = d.day
        GROUP BY d.day
        ORDER BY d.day
        """,
        days,
    )


async def per_client_totals(conn: asyncpg.Connection) -> list[dict]:
    return await db.fetch_all(
        conn,
        """
        SELECT c.id AS client_id, c.name AS client_name, count(s.id) AS total
        FROM clients c
        LEFT JOIN forms f ON f.client_id = c.id
        LEFT JOIN submissions s ON s.form_id = f.id
        GROUP BY c.id, c.name
        ORDER BY total DESC, c.name
        """
    )
