"""Operator session handling for the room-creation endpoints."""
from __future__ import annotations

import hmac
import time
from typing import Any

import jwt
from fastapi import HTTPException, Request, status

from ..core.config import settings

SESSION_SUBJECT = "operator"
SESSION_SCOPE = "session"


def verify_password(candidate: str) -> bool:
    expected = settings.operator_password
    if not expected:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def issue_session(now: float | None = None) -> str:
    issued_at = int(time.time() if now is None else now)
    claims = {
        "sub": SESSION_SUBJECT,
        "scope": SESSION_SCOPE,
        "iat": issued_at,
        "exp": issued_at + settings.session_ttl_seconds,
    }
    return jwt.encode(claims, settings.session_secret, algorithm="HS256")


def read_session(cookie: str | None) -> dict[str, Any] | None:
    """Return the session claims, or None when the cookie is absent or invalid."""

    if not cookie:
        return None
    try:
        claims = jwt.decode(cookie, settings.session_secret, algorithms=["HS256"])
    except jwt.PyJWTError:
        return None
    if claims.get("scope") != SESSION_SCOPE:
        return None
    return claims


def require_operator(request: Request) -> dict[str, Any]:
    """FastAPI dependency guarding operator-only endpoints."""

    claims = read_session(request.cookies.get(settings.session_cookie_name))
    if claims is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
    return claims
