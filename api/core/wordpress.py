"""
WordPress HTTP client helpers.

Used endpoints (relative to a client's site URL):
- GET /wp-json/fdc/v1/bulk-sync                      -> [entry, ...]  (connector plugin)
- GET /wp-json/gf/v2/forms                           -> Gravity Forms form list
- GET /wp-json/contact-form-7/v1/contact-forms       -> Contact Form 7 form list
"""

from __future__ import annotations

from typing import Any

import httpx

from core import config

DEFAULT_TIMEOUT_S = 30.0

BULK_SYNC_PATH = "/wp-json/fdc/v1/bulk-sync"
GRAVITY_FORMS_PATH = "/wp-json/gf/v2/forms"
CONTACT_FORM_7_PATH = "/wp-json/contact-form-7/v1/contact-forms"


# Upstream failures are explicit and separable from persistence errors.
class WordPressError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class WordPressTimeout(WordPressError):
    """The site did not answer within the configured timeout. Safe to retry."""


def timeout_s() -> float:
    value = config.env_float("WORDPRESS_TIMEOUT_S", DEFAULT_TIMEOUT_S)
    return value if value > 0 else DEFAULT_TIMEOUT_S


def normalize_site_url(site_url: str) -> str:
    site_url = (site_url or "").strip()
    if not site_url:
        raise WordPressError("WordPress URL is empty.")
    return site_url.rstrip("/")


async def get_json(
    *,
    site_url: str,
    path: str,
    bearer_token: str | None = None,
    basic_auth: tuple[str, str] | None = None,
    timeout: float | None = None,
) -> Any:
    """
    GET a JSON document from a WordPress site.

    Raises WordPressTimeout on timeout and WordPressError on any other transport
    failure, non-2xx status, or non-JSON body.
    """
    base_url = normalize_site_url(site_url)
    headers: dict[str, str] = {"Accept": "application/json"}
    if bearer_token:
        headers["Authorization"] = f"Bearer {bearer_token}"

    try:
        async with httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout if timeout is not None else timeout_s(),
            auth=basic_auth,
        ) as client:
            resp = await client.get(path, headers=headers)
    except httpx.TimeoutException as exc:
        raise WordPressTimeout(f"WordPress request timed out: {base_url}{path}") from exc
    except httpx.HTTPError as exc:
        raise WordPressError(f"WordPress request failed: {base_url}{path}: {exc}") from exc

    if not resp.is_success:
        # Avoid dumping huge bodies; include a small snippet.
        body = resp.text[:300]
        raise WordPressError(
            f"WordPress returned {resp.status_code}: {body}",
            status_code=resp.status_code,
        )

    try:
        return resp.json()
    except ValueError as exc:
        raise WordPressError("WordPress returned a non-JSON body.", status_code=resp.status_code) from exc


async def fetch_bulk_entries(*, site_url: str, api_key: str) -> list[Any]:
    """
    Pull submission entries from the connector plugin's bulk-sync endpoint.
    """
    data = await get_json(site_url=site_url, path=BULK_SYNC_PATH, bearer_token=api_key)
    if not isinstance(data, list):
        return []
    return data
