"""
Form registry + submission business logic.

- sync_forms: reconcile a client's reported forms into the registry
- ingest_submission: store one pushed submission for a registered form
- discover_forms: best-effort probe of known plugin REST endpoints
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import asyncpg
from fastapi import HTTPException
from pydantic import ValidationError

from clients import repository as client_repository
from core import wordpress
from core.batch import BatchResult

from . import repository, schemas

logger = logging.getLogger(__name__)

GRAVITY_FORMS = "gravity-forms"
CONTACT_FORM_7 = "contact-form-7"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime:
    """
    Submission timestamps default to "now"; naive values are taken as UTC.
    """
    if value is None:
        return _utc_now()
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid item"
    first = errors[0]
    loc = ".".join(str(part) for part in first.get("loc", ()))
    return f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))


def extract_forms_payload(body: Any) -> list[Any]:
    """
    Accept either a bare JSON array of forms or {"forms": [...]}.
    """
    if isinstance(body, list):
        forms = body
    elif isinstance(body, dict) and isinstance(body.get("forms"), list):
        forms = body["forms"]
    else:
        forms = None

    if not forms:
        raise HTTPException(
            status_code=400,
            detail='No forms provided. Expected a JSON array of forms, or { "forms": [ ... ] }.',
        )
    return forms


async def sync_forms(conn: asyncpg.Connection, *, client_id: int, body: Any) -> dict:
    forms = extract_forms_payload(body)
    result = BatchResult()

    for index, raw in enumerate(forms):
        if not isinstance(raw, dict):
            result.record_skip(index, "form must be a JSON object")
            continue
        try:
            item = schemas.SyncFormItem.model_validate(raw)
        except ValidationError as exc:
            # Skip invalid form objects, but don't fail the whole sync.
            result.record_skip(index, _first_error(exc))
            continue

        try:
            await repository.upsert_form(
                conn,
                client_id=client_id,
                external_form_id=item.external_form_id,
                form_name=item.form_name,
                plugin=item.plugin,
                schema=item.form_schema,
            )
        except asyncpg.PostgresError as exc:
            logger.warning(
                "form_sync_item_failed client_id=%s index=%s form_id=%s error=%s",
                client_id,
                index,
                item.external_form_id,
                exc.__class__.__name__,
            )
            result.record_skip(index, f"database error: {exc.__class__.__name__}")
            continue
        result.record_success()

    logger.info(
        "forms_synced client_id=%s received=%s synced=%s skipped=%s",
        client_id,
        len(forms),
        result.succeeded,
        result.skipped,
    )
    return {
        "success": True,
        "client_id": client_id,
        "received": len(forms),
        "synced": result.succeeded,
        "skipped": result.skipped,
        "errors": result.errors,
    }


async def ingest_submission(
    conn: asyncpg.Connection,
    *,
    client_id: int,
    payload: schemas.IngestSubmissionRequest,
) -> dict:
    form_id = await repository.find_form_id(
        conn,
        client_id=client_id,
        external_form_id=payload.external_form_id,
        plugin=payload.plugin,
    )
    if form_id is None:
        # Never create forms here: unknown forms must be registered by /forms/sync.
        raise HTTPException(
            status_code=404,
            detail={
                "error": "Form not found.",
                "hint": "Sync forms first via POST /forms/sync, then retry this submission.",
                "lookup": {
                    "client_id": client_id,
                    "form_id": payload.external_form_id,
                    "form_plugin": payload.plugin,
                },
            },
        )

    submitted_at = as_utc(payload.submitted_at)
    if payload.external_id:
        submission_id, inserted = await repository.upsert_submission(
            conn,
            form_id=form_id,
            external_id=payload.external_id,
            submission_data=payload.submission_data,
            submitted_at=submitted_at,
        )
    else:
        submission_id = await repository.insert_submission(
            conn,
            form_id=form_id,
            submission_data=payload.submission_data,
            submitted_at=submitted_at,
        )
        inserted = True

    logger.info(
        "submission_ingested client_id=%s form_id=%s submission_id=%s inserted=%s",
        client_id,
        form_id,
        submission_id,
        inserted,
    )
    return {"success": True, "submission_id": submission_id, "inserted": inserted}


def _parse_gravity_forms(data: Any) -> list[dict[str, Any]]:
    # GF v2 returns either a list or an object keyed by form id.
    if isinstance(data, dict):
        items = list(data.values())
    elif isinstance(data, list):
        items = data
    else:
        return []

    parsed: list[dict[str, Any]] = []
    for form in items:
        if not isinstance(form, dict) or form.get("id") is None:
            continue
        parsed.append(
            {
                "form_id": str(form["id"]),
                "form_name": str(form.get("title") or f"Form {form['id']}"),
                "form_plugin": GRAVITY_FORMS,
                "form_schema": form.get("fields"),
            }
        )
    return parsed


def _parse_contact_form_7(data: Any) -> list[dict[str, Any]]:
    items = data.get("contact_forms") if isinstance(data, dict) else data
    if not isinstance(items, list):
        return []

    parsed: list[dict[str, Any]] = []
    for form in items:
        if not isinstance(form, dict) or form.get("id") is None:
            continue
        title = form.get("title")
        if isinstance(title, dict):
            title = title.get("rendered")
        parsed.append(
            {
                "form_id": str(form["id"]),
                "form_name": str(title or f"Form {form['id']}"),
                "form_plugin": CONTACT_FORM_7,
                "form_schema": form,
            }
        )
    return parsed


DISCOVERY_PROBES = (
    (GRAVITY_FORMS, wordpress.GRAVITY_FORMS_PATH, _parse_gravity_forms),
    (CONTACT_FORM_7, wordpress.CONTACT_FORM_7_PATH, _parse_contact_form_7),
)


async def discover_forms(conn: asyncpg.Connection, client_id: int) -> dict:
    """
    Probe the client's site for known form plugins and merge what is found into
    the registry. A plugin that is missing or unreachable is not an error.
    """
    client = await client_repository.get_client_with_credentials(conn, client_id)
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found.")

    basic_auth = None
    if client.get("wordpress_username"):
        basic_auth = (str(client["wordpress_username"]), str(client.get("wordpress_app_password") or ""))

    discovered: list[dict[str, Any]] = []
    for plugin, path, parse in DISCOVERY_PROBES:
        try:
            data = await wordpress.get_json(
                site_url=str(client["wordpress_url"]),
                path=path,
                basic_auth=basic_auth,
            )
        except wordpress.WordPressError as exc:
            logger.info("discovery_probe_failed client_id=%s plugin=%s error=%s", client_id, plugin, exc)
            continue
        discovered.extend(parse(data))

    for form in discovered:
        form["id"] = await repository.upsert_form_schema(
            conn,
            client_id=client_id,
            external_form_id=form["form_id"],
            form_name=form["form_name"],
            plugin=form["form_plugin"],
            schema=form["form_schema"],
        )

    logger.info("forms_discovered client_id=%s discovered=%s", client_id, len(discovered))
    return {
        "discovered": len(discovered),
        "forms": [
            {
                "id": form["id"],
                "form_id": form["form_id"],
                "form_name": form["form_name"],
                "form_plugin": form["form_plugin"],
            }
            for form in discovered
        ],
    }


async def list_forms(conn: asyncpg.Connection, client_id: int) -> list[dict]:
    if await client_repository.get_client(conn, client_id) is None:
        raise HTTPException(status_code=404, detail="Client not found.")
    return await repository.list_forms_for_client(conn, client_id)


async def list_submissions(conn: asyncpg.Connection, form_id: int) -> list[dict]:
    if await repository.get_form(conn, form_id) is None:
        raise HTTPException(status_code=404, detail="Form not found.")
    return await repository.list_submissions(conn, form_id)


async def delete_form(conn: asyncpg.Connection, form_id: int) -> dict:
    if not await repository.delete_form(conn, form_id):
        raise HTTPException(status_code=404, detail="Form not found.")
    logger.info("form_deleted form_id=%s", form_id)
    return {"success": True, "form_id": form_id}


async def delete_submission(conn: asyncpg.Connection, submission_id: int) -> dict:
    if not await repository.delete_submission(conn, submission_id):
        raise HTTPException(status_code=404, detail="Submission not found.")
    logger.info("submission_deleted submission_id=%s", submission_id)
    return {"success": True}


async def recent_submissions(conn: asyncpg.Connection, *, days: int) -> list[dict]:
    return await repository.list_recent_submissions(conn, days=days)
