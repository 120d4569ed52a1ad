"""
Auth API endpoints.

No `from __future__ import annotations` here: slowapi wraps `login`, and FastAPI
resolves string annotations against the wrapper's module globals.
"""

import asyncpg
from fastapi import APIRouter, Depends, Request

from core import db
from core.rate_limit import limiter, login_limit

from . import dependencies, schemas, service

router = APIRouter(prefix="/auth")


@router.post("/signup", response_model=schemas.AuthResponse)
async def signup(
    payload: schemas.SignupRequest,
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> schemas.AuthResponse:
    return await service.signup(conn, payload)


@router.post("/login", response_model=schemas.AuthResponse)
@limiter.limit(login_limit)
async def login(
    request: Request,
    payload: schemas.LoginRequest,
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> schemas.AuthResponse:
    return await service.login(conn, payload)


@router.get("/me", response_model=schemas.UserResponse)
async def get_me(
    identity: schemas.SessionIdentity = Depends(dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> schemas.UserResponse:
    return await service.me(conn, identity)


@router.patch("/me")
async def update_me(
    payload: schemas.UpdateMeRequest,
    identity: schemas.SessionIdentity = Depends(dependencies.get_session_identity),
    conn: asyncpg.Connection = Depends(db.get_connection),
) -> dict:
    user = await service.update_me(conn, identity, payload)
    return {"user": user}
