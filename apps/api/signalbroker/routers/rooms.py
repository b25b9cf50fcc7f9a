"""Room creation and short-link resolution endpoints."""
from __future__ import annotations

import logging
import secrets
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import RedirectResponse
from starlette.datastructures import URL

from ..core.config import settings
from ..schemas.rooms import RoomCreateRequest, RoomCreateResponse
from ..services.auth import require_operator
from ..services.short_links import short_links
from ..services.tokens import issuer

logger = logging.getLogger(__name__)

router = APIRouter()
link_router = APIRouter()


def new_room_id() -> str:
    return secrets.token_urlsafe(12)


@router.post("", response_model=RoomCreateResponse)
async def create_room(
    payload: RoomCreateRequest | None = None,
    _operator: dict[str, Any] = Depends(require_operator),
) -> RoomCreateResponse:
    """Mint a fresh room id with its join token and short link."""

    request = payload or RoomCreateRequest()
    room_id = new_room_id()
    token = issuer.issue(room_id)
    link = short_links.create(request.kind, room_id, token.token)
    logger.info("Issued room %s with short link %s", room_id, link.code)

    return RoomCreateResponse(
        room_id=room_id,
        token=token.token,
        link=f"{settings.public_base_url.rstrip('/')}/s/{link.code}",
        expires_in=token.expires_in,
    )


@link_router.get("/{code}", response_class=RedirectResponse)
async def resolve_short_link(code: str) -> RedirectResponse:
    """Redirect an invitation code to the client page with its room and token."""

    link = short_links.resolve(code)
    if link is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Link not found or expired")

    target = URL(settings.client_page_url).include_query_params(
        roomId=link.room_id,
        token=link.token,
        kind=link.kind.value,
    )
    return RedirectResponse(url=str(target))
