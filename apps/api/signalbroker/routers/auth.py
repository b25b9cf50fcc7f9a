"""Operator login and logout endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Response, status

from ..core.config import settings
from ..schemas.auth import LoginRequest, LoginResponse
from ..services import auth as auth_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(payload: LoginRequest, response: Response) -> LoginResponse:
    """Exchange the operator password for a session cookie."""

    if not auth_service.verify_password(payload.password):
        logger.info("Rejected operator login")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password")

    response.set_cookie(
        settings.session_cookie_name,
        auth_service.issue_session(),
        max_age=settings.session_ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=settings.session_cookie_secure,
    )
    return LoginResponse(status="ok")


@router.post("/logout", response_model=LoginResponse)
async def logout(response: Response) -> LoginResponse:
    """Drop the operator session cookie."""

    response.delete_cookie(settings.session_cookie_name)
    return LoginResponse(status="ok")
