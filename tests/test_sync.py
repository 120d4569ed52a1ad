"""Tests for the WordPress bulk-sync pull."""

from __future__ import annotations

import asyncpg
from httpx import AsyncClient

from core import wordpress
from forms import repository as form_repository


def _entries():
    return [
        {
            "form_id": "7",
            "form_name": "Contact",
            "form_plugin": "gravity-forms",
            "external_id": "gf-101",
            "submission_data": {"Name": "Jane"},
            "submitted_at": "2026-03-01T10:00:00Z",
        },
        {
            "form_id": "7",
            "form_name": "Contact",
            "form_plugin": "gravity-forms",
            "external_id": "gf-102",
            "submission_data": {"Name": "John"},
            "submitted_at": "2026-03-02T10:00:00Z",
        },
        {
            "form_id": 3,
            "form_name": "Quote",
            "form_plugin": "contact-form-7",
            "external_id": 55,
            "submission_data": {"Budget": "1k"},
        },
    ]


def _serve(monkeypatch, entries=None, error: Exception | None = None) -> list[dict]:
    calls: list[dict] = []

    async def fake_fetch_bulk_entries(*, site_url, api_key):
        calls.append({"site_url": site_url, "api_key": api_key})
        if error is not None:
            raise error
        return entries

    monkeypatch.setattr(wordpress, "fetch_bulk_entries", fake_fetch_bulk_entries)
    return calls


async def test_bulk_sync_inserts_then_refreshes(api: AsyncClient, store, site, session_headers, monkeypatch):
    calls = _serve(monkeypatch, _entries())

    response = await api.post(f"/sync/client/{site['client_id']}", headers=session_headers)
    assert response.status_code == 200
    assert response.json() == {"success": True, "synced": 3, "skipped": 0, "total": 3, "errors": []}
    assert calls == [{"site_url": "https://acme.example", "api_key": site["api_key"]}]
    assert len(store.forms) == 2
    assert len(store.submissions) == 3

    updated = _entries()
    updated[0]["submission_data"] = {"Name": "Jane Doe"}
    _serve(monkeypatch, updated)

    response = await api.post(f"/sync/client/{site['client_id']}", headers=session_headers)
    data = response.json()
    assert data["synced"] == 0
    assert data["skipped"] == 3
    assert data["total"] == 3
    assert data["errors"] == []
    assert len(store.submissions) == 3
    jane = next(s for s in store.submissions.values() if s["external_id"] == "gf-101")
    assert jane["submission_data"] == {"Name": "Jane Doe"}


async def test_bulk_sync_refreshes_name_and_keeps_schema(api: AsyncClient, store, site, session_headers, monkeypatch):
    await api.post(
        "/forms/sync",
        json=[{"form_id": "7", "form_name": "Contact", "form_plugin": "gravity-forms", "fields": ["name"]}],
        headers=site["headers"],
    )
    entries = _entries()[:1]
    entries[0]["form_name"] = "Contact (renamed)"
    _serve(monkeypatch, entries)

    await api.post(f"/sync/client/{site['client_id']}", headers=session_headers)

    (form,) = store.forms.values()
    assert form["form_name"] == "Contact (renamed)"
    assert form["form_schema"] == ["name"]


async def test_bulk_sync_skips_invalid_entries(api: AsyncClient, store, site, session_headers, monkeypatch):
    _serve(monkeypatch, [_entries()[0], {"form_id": "7"}, "garbage"])

    response = await api.post(f"/sync/client/{site['client_id']}", headers=session_headers)
    data = response.json()
    assert data["total"] == 3
    assert data["synced"] == 1
    assert data["skipped"] == 2
    assert [err["index"] for err in data["errors"]] == [1, 2]
    assert len(store.submissions) == 1


async def test_bulk_sync_requires_active_key(api: AsyncClient, store, site, session_headers, monkeypatch):
    calls = _serve(monkeypatch, _entries())
    (key_id,) = store.api_keys
    await api.post(f"/api-keys/{key_id}/deactivate", headers=session_headers)

    response = await api.post(f"/sync/client/{site['client_id']}", headers=session_headers)
    assert response.status_code == 400
    assert response.json()["detail"] == "No active API key found for this client."
    assert calls == []


async def test_bulk_sync_unknown_client(api: AsyncClient, session_headers, monkeypatch):
    _serve(monkeypatch, _entries())
    response = await api.post("/sync/client/999", headers=session_headers)
    assert response.status_code == 404


async def test_bulk_sync_upstream_failure(api: AsyncClient, store, site, session_headers, monkeypatch):
    _serve(monkeypatch, error=wordpress.WordPressError("WordPress returned 500: oops", status_code=500))

    response = await api.post(f"/sync/client/{site['client_id']}", headers=session_headers)
    assert response.status_code == 502
    assert store.submissions == {}


async def test_bulk_sync_timeout_is_retryable(api: AsyncClient, site, session_headers, monkeypatch):
    _serve(monkeypatch, error=wordpress.WordPressTimeout("timed out"))

    response = await api.post(f"/sync/client/{site['client_id']}", headers=session_headers)
    assert response.status_code == 504


async def test_bulk_sync_entry_database_error_is_skipped(api: AsyncClient, store, site, session_headers, monkeypatch):
    _serve(monkeypatch, _entries())

    async def upsert_submission(conn, **kwargs):
        if kwargs["external_id"] == "gf-102":
            raise asyncpg.PostgresError("could not write entry")
        return await store.upsert_submission(conn, **kwargs)

    monkeypatch.setattr(form_repository, "upsert_submission", upsert_submission)

    response = await api.post(f"/sync/client/{site['client_id']}", headers=session_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 3
    assert data["synced"] == 2
    assert data["skipped"] == 1
    assert data["errors"][0]["index"] == 1
    assert data["errors"][0]["error"].startswith("database error")
    assert sorted(s["external_id"] for s in store.submissions.values()) == ["55", "gf-101"]
