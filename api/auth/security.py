"""
Auth security helpers.

Two bearer credential kinds are accepted:
- API keys: `fdc_` + 64 hex chars, looked up in `api_keys`.
- Session tokens: HS256 JWTs issued on signup/login, valid for 7 days.
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from typing import Any

import bcrypt
import jwt

from core import config

API_KEY_PREFIX = "fdc_"
SESSION_TOKEN_TYPE = "session"


class AuthSecurityError(RuntimeError):
    pass


@dataclass(frozen=True)
class ApiKeyCredential:
    raw: str


@dataclass(frozen=True)
class SessionCredential:
    raw: str


Credential = ApiKeyCredential | SessionCredential


def jwt_secret() -> str:
    # Local default keeps development simple.
    # In production, set JWT_SECRET in environment.
    return config.env_str("JWT_SECRET", "dev-change-this-secret")


def jwt_algorithm() -> str:
    return config.env_str("JWT_ALG", "HS256")


def session_token_expire_days() -> int:
    return config.env_int("SESSION_TOKEN_EXPIRE_DAYS", 7)


def now_epoch_s() -> int:
    return int(time.time())


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise AuthSecurityError("Password is empty.")
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


def build_session_token(*, user_id: int, email: str, issued_at: int | None = None) -> str:
    issued_at = now_epoch_s() if issued_at is None else issued_at
    expires_at = issued_at + (session_token_expire_days() * 24 * 60 * 60)

    payload = {
        "sub": str(user_id),
        "email": email,
        "type": SESSION_TOKEN_TYPE,
        "iat": issued_at,
        "exp": expires_at,
    }
    return jwt.encode(payload, jwt_secret(), algorithm=jwt_algorithm())


def decode_session_token(token: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Session token is empty.")

    try:
        payload = jwt.decode(raw, jwt_secret(), algorithms=[jwt_algorithm()])
    except jwt.ExpiredSignatureError as exc:
        raise AuthSecurityError("Session token is expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid token.") from exc

    token_type = str(payload.get("type") or "").strip().lower()
    if token_type != SESSION_TOKEN_TYPE:
        raise AuthSecurityError("Token is not a session token.")

    subject = str(payload.get("sub") or "").strip()
    if not subject.isdigit():
        raise AuthSecurityError("Invalid token subject.")

    return payload


def generate_api_key() -> str:
    return API_KEY_PREFIX + secrets.token_hex(32)


def is_api_key(token: str) -> bool:
    return (token or "").startswith(API_KEY_PREFIX)


def parse_credential(token: str) -> Credential:
    """
    Classify a bearer credential by its prefix.
    """
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Credential is empty.")
    if is_api_key(raw):
        return ApiKeyCredential(raw=raw)
    return SessionCredential(raw=raw)
