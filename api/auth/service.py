"""
Auth business logic: accounts, sessions and bearer credential resolution.
"""

from __future__ import annotations

import logging
import secrets

import asyncpg
from fastapi import HTTPException, status

from api_keys import repository as api_key_repository
from core import config

from . import repository, schemas, security

logger = logging.getLogger(__name__)


def signup_code() -> str:
    return config.env_str("SIGNUP_CODE", "")


def _to_user_response(user_row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=int(user_row["id"]),
        email=str(user_row["email"]),
        name=user_row.get("name"),
        created_at=user_row.get("created_at"),
    )


def _auth_response(user_row: dict) -> schemas.AuthResponse:
    token = security.build_session_token(user_id=int(user_row["id"]), email=str(user_row["email"]))
    return schemas.AuthResponse(token=token, user=_to_user_response(user_row))


def _invite_code_matches(invite_code: str | None) -> bool:
    expected = signup_code()
    if not expected or not invite_code:
        return False
    return secrets.compare_digest(invite_code.encode("utf-8"), expected.encode("utf-8"))


async def signup(conn: asyncpg.Connection, payload: schemas.SignupRequest) -> schemas.AuthResponse:
    if not payload.email or not payload.password:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email and password required.")

    if not _invite_code_matches(payload.invite_code):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid invite code.")

    password_hash = security.hash_password(payload.password)
    try:
        user_row = await repository.create_user(
            conn,
            email=payload.email,
            password_hash=password_hash,
            name=payload.name or None,
        )
    except asyncpg.UniqueViolationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already exists.") from exc

    logger.info("user_signup user_id=%s", user_row["id"])
    return _auth_response(user_row)


async def login(conn: asyncpg.Connection, payload: schemas.LoginRequest) -> schemas.AuthResponse:
    user_row = await repository.get_user_by_email(conn, payload.email)
    if user_row is None:
        logger.info("login_failed reason=unknown_email")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials.")

    if not security.verify_password(payload.password, str(user_row.get("password_hash") or "")):
        logger.info("login_failed reason=bad_password user_id=%s", user_row["id"])
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials.")

    return _auth_response(user_row)


async def me(conn: asyncpg.Connection, identity: schemas.SessionIdentity) -> schemas.UserResponse:
    user_row = await repository.get_user_by_id(conn, identity.user_id)
    if user_row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return _to_user_response(user_row)


async def update_me(
    conn: asyncpg.Connection,
    identity: schemas.SessionIdentity,
    payload: schemas.UpdateMeRequest,
) -> schemas.UserResponse:
    name = payload.name or None
    email = payload.email or None
    if name is None and email is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Nothing to update.")

    try:
        user_row = await repository.update_user_profile(conn, identity.user_id, name=name, email=email)
    except asyncpg.UniqueViolationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already in use.") from exc

    if user_row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return _to_user_response(user_row)


async def _resolve_api_key(conn: asyncpg.Connection, credential: security.ApiKeyCredential) -> schemas.ApiKeyIdentity:
    key_row = await api_key_repository.get_api_key(conn, credential.raw)
    if key_row is None or not bool(key_row.get("is_active", False)):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid or inactive API key.")

    client_id = key_row.get("client_id")
    return schemas.ApiKeyIdentity(
        user_id=int(key_row["user_id"]),
        client_id=int(client_id) if client_id is not None else None,
        key_id=int(key_row["id"]),
    )


def _resolve_session(credential: security.SessionCredential) -> schemas.SessionIdentity:
    try:
        payload = security.decode_session_token(credential.raw)
    except security.AuthSecurityError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc)) from exc

    return schemas.SessionIdentity(
        user_id=int(payload["sub"]),
        email=str(payload.get("email") or ""),
    )


async def resolve_credential(conn: asyncpg.Connection, token: str) -> schemas.Identity:
    """
    Resolve a bearer credential to the acting identity.

    API keys are checked against the database (must exist and be active).
    Session tokens are verified offline (signature + expiry); the identity is
    whatever the token embeds.
    """
    try:
        credential = security.parse_credential(token)
    except security.AuthSecurityError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc

    if isinstance(credential, security.ApiKeyCredential):
        return await _resolve_api_key(conn, credential)
    return _resolve_session(credential)
