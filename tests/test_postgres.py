"""
Repository SQL against a real Postgres.

Runs only when TEST_DATABASE_URL is set. Each test gets a throwaway schema with
the migration applied, so nothing touches existing tables.
"""

from __future__ import annotations

import os
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import AsyncGenerator

import asyncpg
import pytest

from api_keys import repository as api_key_repository
from auth import repository as auth_repository
from clients import repository as client_repository
from forms import repository as form_repository
from stats import repository as stats_repository

TEST_DATABASE_URL = os.environ.get("TEST_DATABASE_URL", "").strip()
MIGRATIONS_DIR = Path(__file__).resolve().parents[1] / "db" / "migrations"

pytestmark = pytest.mark.skipif(not TEST_DATABASE_URL, reason="TEST_DATABASE_URL is not set")


def _migration_up_sql() -> str:
    chunks = []
    for path in sorted(MIGRATIONS_DIR.glob("*.sql")):
        text = path.read_text(encoding="utf-8")
        chunks.append(text.split("-- migrate:down", 1)[0].replace("-- migrate:up", ""))
    return "\n".join(chunks)


@pytest.fixture
async def conn() -> AsyncGenerator[asyncpg.Connection, None]:
    schema = f"test_{uuid.uuid4().hex[:12]}"
    connection = await asyncpg.connect(TEST_DATABASE_URL)
    try:
        await connection.execute(f'CREATE SCHEMA "{schema}"')
        await connection.execute(f'SET search_path TO "{schema}"')
        await connection.execute(_migration_up_sql())
        yield connection
    finally:
        await connection.execute(f'DROP SCHEMA IF EXISTS "{schema}" CASCADE')
        await connection.close()


async def _client(conn: asyncpg.Connection, *, api_key: str = "fdc_test-1") -> tuple[int, int]:
    user = await auth_repository.create_user(conn, email=f"{uuid.uuid4().hex}@agency.test", password_hash="x")
    client_row, _ = await client_repository.create_client_with_key(
        conn,
        user_id=user["id"],
        name="Acme",
        wordpress_url="https://acme.example",
        api_key=api_key,
        key_name="Acme-connector",
    )
    return int(user["id"]), int(client_row["id"])


async def _form(conn: asyncpg.Connection, client_id: int) -> int:
    return await form_repository.upsert_form(
        conn,
        client_id=client_id,
        external_form_id="7",
        form_name="Contact",
        plugin="gravity-forms",
        schema=[{"id": 1}],
    )


async def test_duplicate_email_violates_unique(conn):
    await auth_repository.create_user(conn, email="jane@agency.test", password_hash="x")
    with pytest.raises(asyncpg.UniqueViolationError):
        await auth_repository.create_user(conn, email="JANE@agency.test", password_hash="y")


async def test_form_upserts_are_idempotent(conn):
    _, client_id = await _client(conn)
    first = await _form(conn, client_id)
    second = await form_repository.upsert_form(
        conn,
        client_id=client_id,
        external_form_id="7",
        form_name="Contact us",
        plugin="gravity-forms",
        schema=["name"],
    )
    assert first == second

    renamed = await form_repository.upsert_form_name(
        conn,
        client_id=client_id,
        external_form_id="7",
        form_name="Contact (bulk)",
        plugin="gravity-forms",
    )
    assert renamed == first

    form = await form_repository.get_form(conn, first)
    assert form["form_name"] == "Contact (bulk)"
    assert form["form_schema"] == ["name"]
    assert await stats_repository.count_forms(conn) == 1


async def test_submission_upsert_dedups_on_external_id(conn):
    _, client_id = await _client(conn)
    form_id = await _form(conn, client_id)
    now = datetime.now(timezone.utc)

    first_id, inserted = await form_repository.upsert_submission(
        conn, form_id=form_id, external_id="e-1", submission_data={"v": 1}, submitted_at=now
    )
    assert inserted is True

    second_id, inserted = await form_repository.upsert_submission(
        conn, form_id=form_id, external_id="e-1", submission_data={"v": 2}, submitted_at=now
    )
    assert inserted is False
    assert second_id == first_id

    (row,) = await form_repository.list_submissions(conn, form_id)
    assert row["submission_data"] == {"v": 2}


async def test_plain_inserts_are_not_deduplicated(conn):
    _, client_id = await _client(conn)
    form_id = await _form(conn, client_id)
    now = datetime.now(timezone.utc)

    for _ in range(2):
        await form_repository.insert_submission(conn, form_id=form_id, submission_data={"v": 1}, submitted_at=now)

    assert len(await form_repository.list_submissions(conn, form_id)) == 2


async def test_client_delete_cascades(conn):
    _, client_id = await _client(conn, api_key="fdc_cascade")
    form_id = await _form(conn, client_id)
    await form_repository.insert_submission(
        conn, form_id=form_id, submission_data={}, submitted_at=datetime.now(timezone.utc)
    )

    assert await client_repository.delete_client(conn, client_id) is True
    assert await form_repository.get_form(conn, form_id) is None
    assert await stats_repository.count_submissions(conn) == 0
    assert await api_key_repository.get_api_key(conn, "fdc_cascade") is None
    assert await client_repository.delete_client(conn, client_id) is False


async def test_form_delete_keeps_client(conn):
    _, client_id = await _client(conn)
    form_id = await _form(conn, client_id)

    assert await form_repository.delete_form(conn, form_id) is True
    assert await client_repository.get_client(conn, client_id) is not None


async def test_client_creation_rolls_back_on_key_conflict(conn):
    user_id, _ = await _client(conn, api_key="fdc_taken")

    with pytest.raises(asyncpg.UniqueViolationError):
        await client_repository.create_client_with_key(
            conn,
            user_id=user_id,
            name="Second",
            wordpress_url="https://second.example",
            api_key="fdc_taken",
            key_name="Second-connector",
        )

    assert [c["name"] for c in await client_repository.list_clients(conn)] == ["Acme"]


async def test_active_key_lookup_skips_deactivated(conn):
    user_id, client_id = await _client(conn, api_key="fdc_connector")
    assert await api_key_repository.get_active_key_for_client(conn, client_id) == "fdc_connector"

    key = await api_key_repository.get_api_key(conn, "fdc_connector")
    await api_key_repository.deactivate_api_key(conn, key["id"], user_id=user_id)
    assert await api_key_repository.get_active_key_for_client(conn, client_id) is None


async def test_daily_counts_zero_fill(conn):
    _, client_id = await _client(conn)
    form_id = await _form(conn, client_id)
    now = datetime.now(timezone.utc)
    for submitted_at in (now, now, now - timedelta(days=2), now - timedelta(days=40)):
        await form_repository.insert_submission(
            conn, form_id=form_id, submission_data={}, submitted_at=submitted_at
        )

    rows = await stats_repository.daily_counts(conn, days=7)

    assert len(rows) == 7
    assert rows[-1]["day"] == now.date()
    assert [int(r["count"]) for r in rows][-3:] == [1, 0, 2]
    assert sum(int(r["count"]) for r in rows) == 3
    assert await stats_repository.count_submissions(conn, client_id=client_id) == 4

    (total,) = await stats_repository.per_client_totals(conn)
    assert int(total["total"]) == 4
