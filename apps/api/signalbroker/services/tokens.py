"""Room access tokens.

Tokens are HS256 JWTs that bind a room id to a validity window. Verification is
a pure function of the token and the shared secret; there is no token registry.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

import jwt

from ..core.config import settings

ALGORITHM = "HS256"
ROOM_CLAIM = "rid"


class TokenError(Exception):
    """Base class for every token verification failure."""


class TokenExpiredError(TokenError):
    pass


class TokenMalformedError(TokenError):
    pass


class TokenRoomMismatchError(TokenError):
    pass


@dataclass(slots=True)
class RoomToken:
    token: str
    room_id: str
    issued_at: int
    expires_at: int

    @property
    def expires_in(self) -> int:
        return self.expires_at - self.issued_at


class TokenIssuer:
    """Mint and verify room-scoped tokens."""

    def __init__(self, secret: str | None = None, default_ttl: int | None = None) -> None:
        self._secret = secret
        self._default_ttl = default_ttl

    @property
    def secret(self) -> str:
        return self._secret or settings.token_secret

    @property
    def default_ttl(self) -> int:
        return self._default_ttl or settings.token_ttl_seconds

    def issue(self, room_id: str, ttl: int | None = None, now: float | None = None) -> RoomToken:
        """Produce a token for ``room_id`` valid for ``ttl`` seconds from ``now``."""

        issued_at = int(time.time() if now is None else now)
        expires_at = issued_at + int(self.default_ttl if ttl is None else ttl)
        claims = {ROOM_CLAIM: room_id, "iat": issued_at, "exp": expires_at}
        token = jwt.encode(claims, self.secret, algorithm=ALGORITHM)
        return RoomToken(token=token, room_id=room_id, issued_at=issued_at, expires_at=expires_at)

    def verify(self, token: str, expected_room_id: str) -> dict[str, Any]:
        """Return the token claims, raising a ``TokenError`` subclass on failure.

        Signature and validity window are checked before the room id, so a
        forged token never reaches the room comparison.
        """

        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat", ROOM_CLAIM]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError("token expired") from exc
        except jwt.PyJWTError as exc:
            raise TokenMalformedError(str(exc)) from exc

        if claims.get(ROOM_CLAIM) != expected_room_id:
            raise TokenRoomMismatchError("token bound to a different room")
        return claims


issuer = TokenIssuer()
