"""
Dashboard rollups. Every call recomputes against current data; nothing is cached.
"""

from __future__ import annotations

import asyncpg
from fastapi import HTTPException

from clients import repository as client_repository

from . import repository

DEFAULT_TREND_DAYS = 30


async def global_stats(conn: asyncpg.Connection, *, days: int = DEFAULT_TREND_DAYS) -> dict:
    trend_rows = await repository.daily_counts(conn, days=days)
    per_client = await repository.per_client_totals(conn)
    return {
        "totalSubmissions": await repository.count_submissions(conn),
        "submissionsThisMonth": await repository.count_submissions_in_month(conn),
        "lastMonthSubmissions": await repository.count_submissions_in_month(conn, months_ago=1),
        "activeClients": await repository.count_clients(conn),
        "activeForms": await repository.count_forms(conn),
        "dailyTrend": [int(row["count"]) for row in trend_rows],
        "trendStart": trend_rows[0]["day"] if trend_rows else None,
        "perClient": [
            {
                "client_id": int(row["client_id"]),
                "client_name": str(row["client_name"]),
                "total": int(row["total"]),
            }
            for row in per_client
        ],
    }


async def client_stats(conn: asyncpg.Connection, client_id: int) -> dict:
    if await client_repository.get_client(conn, client_id) is None:
        raise HTTPException(status_code=404, detail="Client not found.")
    return {
        "totalSubmissions": await repository.count_submissions(conn, client_id=client_id),
        "submissionsThisMonth": await repository.count_submissions_in_month(conn, client_id=client_id),
    }
