"""
Rate limiting (slowapi).

Limits are tracked in process memory per remote address. Run behind a single
worker, or point RATE_LIMIT_STORAGE_URI at Redis for multi-worker setups.
"""

from __future__ import annotations

from slowapi import Limiter
from slowapi.util import get_remote_address

from core import config

DEFAULT_LOGIN_LIMIT = "10 per 15 minutes"


def login_limit() -> str:
    return config.env_str("LOGIN_RATE_LIMIT", DEFAULT_LOGIN_LIMIT)


limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=config.env_str("RATE_LIMIT_STORAGE_URI", "memory://"),
)
