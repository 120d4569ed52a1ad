"""
Bulk sync: pull a client's submissions from its WordPress site and reconcile them.

This is the idempotent ingestion path. Re-running it with overlapping data
refreshes existing rows instead of duplicating them, because submissions are
upserted on (form, external_id).

Tally semantics:
- synced:  the submission row was freshly inserted
- skipped: the entry was invalid, failed, or refreshed an existing row
- total:   number of entries returned by the site

Each entry is written on its own; a failure part-way leaves earlier entries
committed.
"""

from __future__ import annotations

import logging
from typing import Any

import asyncpg
from fastapi import HTTPException
from pydantic import ValidationError

from api_keys import repository as api_key_repository
from clients import repository as client_repository
from core import wordpress
from core.batch import BatchResult
from forms import repository as form_repository
from forms.service import as_utc

from . import schemas

logger = logging.getLogger(__name__)


def _entry_error(exc: ValidationError) -> str:
    missing = [str(err["loc"][0]) for err in exc.errors() if err.get("loc")]
    if missing:
        return "invalid or missing: " + ", ".join(sorted(set(missing)))
    return "invalid entry"


async def _pull_entries(*, client_id: int, site_url: str, api_key: str) -> list[Any]:
    try:
        return await wordpress.fetch_bulk_entries(site_url=site_url, api_key=api_key)
    except wordpress.WordPressTimeout as exc:
        logger.warning("bulk_sync_timeout client_id=%s error=%s", client_id, exc)
        raise HTTPException(
            status_code=504,
            detail=f"WordPress did not respond within {wordpress.timeout_s():g}s. Retry later.",
        ) from exc
    except wordpress.WordPressError as exc:
        logger.warning("bulk_sync_upstream_failed client_id=%s error=%s", client_id, exc)
        raise HTTPException(status_code=502, detail=str(exc)) from exc


async def _reconcile_entry(
    conn: asyncpg.Connection,
    *,
    client_id: int,
    entry: schemas.BulkSyncEntry,
) -> bool | None:
    """
    Returns True for a fresh insert, False for a refreshed row, None when the
    form could not be resolved.
    """
    form_id = await form_repository.upsert_form_name(
        conn,
        client_id=client_id,
        external_form_id=entry.form_id,
        form_name=entry.form_name or "",
        plugin=entry.form_plugin,
    )
    if form_id is None:
        return None

    _, inserted = await form_repository.upsert_submission(
        conn,
        form_id=form_id,
        external_id=entry.external_id,
        submission_data=entry.submission_data or {},
        submitted_at=as_utc(entry.submitted_at),
    )
    return inserted


async def bulk_sync(conn: asyncpg.Connection, client_id: int) -> dict:
    client = await client_repository.get_client(conn, client_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found.")

    api_key = await api_key_repository.get_active_key_for_client(conn, client_id)
    if api_key is None:
        raise HTTPException(status_code=400, detail="No active API key found for this client.")

    entries = await _pull_entries(
        client_id=client_id,
        site_url=str(client["wordpress_url"]),
        api_key=str(api_key),
    )

    result = BatchResult()
    for index, raw in enumerate(entries):
        if not isinstance(raw, dict):
            result.record_skip(index, "entry must be a JSON object")
            continue
        try:
            entry = schemas.BulkSyncEntry.model_validate(raw)
        except ValidationError as exc:
            result.record_skip(index, _entry_error(exc))
            continue

        try:
            inserted = await _reconcile_entry(conn, client_id=client_id, entry=entry)
        except asyncpg.PostgresError as exc:
            logger.warning(
                "bulk_sync_entry_failed client_id=%s index=%s external_id=%s error=%s",
                client_id,
                index,
                entry.external_id,
                exc.__class__.__name__,
            )
            result.record_skip(index, f"database error: {exc.__class__.__name__}")
            continue

        if inserted is None:
            result.record_skip(index, "form could not be resolved")
        elif inserted:
            result.record_success()
        else:
            result.record_skip(index)

    logger.info(
        "bulk_sync_complete client_id=%s total=%s synced=%s skipped=%s errors=%s",
        client_id,
        len(entries),
        result.succeeded,
        result.skipped,
        len(result.errors),
    )
    return {
        "success": True,
        "synced": result.succeeded,
        "skipped": result.skipped,
        "total": len(entries),
        "errors": result.errors,
    }
