"""Tests for the WordPress HTTP helpers against a mocked transport."""

from __future__ import annotations

import httpx
import pytest

from core import wordpress

RealAsyncClient = httpx.AsyncClient


@pytest.fixture
def serve(monkeypatch):
    """
    Route the module's outbound requests to `handler` instead of the network.
    """
    seen: list[httpx.Request] = []

    def install(handler):
        def recording_handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        def factory(**kwargs):
            return RealAsyncClient(transport=httpx.MockTransport(recording_handler), **kwargs)

        monkeypatch.setattr(wordpress.httpx, "AsyncClient", factory)
        return seen

    return install


async def test_fetch_bulk_entries_sends_bearer(serve):
    seen = serve(lambda request: httpx.Response(200, json=[{"external_id": "1"}]))

    entries = await wordpress.fetch_bulk_entries(site_url="https://acme.example/", api_key="fdc_abc")

    assert entries == [{"external_id": "1"}]
    (request,) = seen
    assert str(request.url) == "https://acme.example/wp-json/fdc/v1/bulk-sync"
    assert request.headers["Authorization"] == "Bearer fdc_abc"


async def test_fetch_bulk_entries_ignores_non_list_body(serve):
    serve(lambda request: httpx.Response(200, json={"entries": []}))
    assert await wordpress.fetch_bulk_entries(site_url="https://acme.example", api_key="k") == []


async def test_non_2xx_raises_with_status(serve):
    serve(lambda request: httpx.Response(401, text="rest_forbidden"))

    with pytest.raises(wordpress.WordPressError) as info:
        await wordpress.get_json(site_url="https://acme.example", path=wordpress.GRAVITY_FORMS_PATH)

    assert info.value.status_code == 401
    assert not isinstance(info.value, wordpress.WordPressTimeout)


async def test_non_json_body_raises(serve):
    serve(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

    with pytest.raises(wordpress.WordPressError):
        await wordpress.get_json(site_url="https://acme.example", path=wordpress.BULK_SYNC_PATH)


async def test_timeout_is_distinguished(serve):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("too slow", request=request)

    serve(handler)

    with pytest.raises(wordpress.WordPressTimeout):
        await wordpress.get_json(site_url="https://acme.example", path=wordpress.BULK_SYNC_PATH)


async def test_connection_error_is_upstream_failure(serve):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    serve(handler)

    with pytest.raises(wordpress.WordPressError) as info:
        await wordpress.get_json(site_url="https://acme.example", path=wordpress.BULK_SYNC_PATH)
    assert not isinstance(info.value, wordpress.WordPressTimeout)


async def test_basic_auth_is_sent(serve):
    seen = serve(lambda request: httpx.Response(200, json=[]))

    await wordpress.get_json(
        site_url="https://acme.example",
        path=wordpress.CONTACT_FORM_7_PATH,
        basic_auth=("admin", "app pass"),
    )

    (request,) = seen
    assert request.headers["Authorization"].startswith("Basic ")


def test_timeout_reads_environment(monkeypatch):
    monkeypatch.setenv("WORDPRESS_TIMEOUT_S", "5")
    assert wordpress.timeout_s() == 5.0

    monkeypatch.setenv("WORDPRESS_TIMEOUT_S", "0")
    assert wordpress.timeout_s() == wordpress.DEFAULT_TIMEOUT_S


async def test_empty_site_url_is_rejected():
    with pytest.raises(wordpress.WordPressError):
        await wordpress.get_json(site_url="  ", path=wordpress.BULK_SYNC_PATH)
