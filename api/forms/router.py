"""
FastAPI routers for the form registry and submissions.
"""

from __future__ import annotations

from typing import Any

import asyncpg
from fastapi import APIRouter, Body, Depends, Query

from auth import dependencies as auth_dependencies
from auth.schemas import ApiKeyIdentity, SessionIdentity
from core import db

from . import schemas, service

router = APIRouter(prefix="/forms")
submissions_router = APIRouter(prefix="/submissions")


@router.post("/sync")
async def sync_forms(
    body: Any = Body(...),
    identity: ApiKeyIdentity = Depends(auth_dependencies.get_client_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> dict:
    """
    Register/refresh the calling site's forms. Accepts `[...]` or `{"forms": [...]}`.
    """
    return await service.sync_forms(conn, client_id=int(identity.client_id), body=body)


@router.post("/submissions", status_code=201)
async def ingest_submission(
    request: schemas.IngestSubmissionRequest,
    identity: ApiKeyIdentity = Depends(auth_dependencies.get_client_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> dict:
    """
    Store one submission pushed by the calling site. The form must already be synced.
    """
    return await service.ingest_submission(conn, client_id=int(identity.client_id), payload=request)


@router.post("/discover/{client_id}")
async def discover_forms(
    client_id: int,
    _: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> dict:
    return await service.discover_forms(conn, client_id)


@router.get("/client/{client_id}")
async def list_client_forms(
    client_id: int,
    _: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> list[dict]:
    return await service.list_forms(conn, client_id)


@router.get("/{form_id}/submissions")
async def list_form_submissions(
    form_id: int,
    _: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> list[dict]:
    return await service.list_submissions(conn, form_id)


@router.delete("/submissions/{submission_id}")
async def delete_submission(
    submission_id: int,
    _: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> dict:
    return await service.delete_submission(conn, submission_id)


@router.delete("/{form_id}")
async def delete_form(
    form_id: int,
    _: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> dict:
    """
    Delete a form and all of its submissions. The owning client is untouched.
    """
    return await service.delete_form(conn, form_id)


@submissions_router.get("/recent")
async def recent_submissions(
    days: int = Query(7, ge=1, le=365),
    _: SessionIdentity = Depends(auth_dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> list[dict]:
    return await service.recent_submissions(conn, days=days)
