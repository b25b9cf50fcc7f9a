"""Relay credentials and signaling endpoints."""
from __future__ import annotations

import asyncio
import logging
from uuid import uuid4

from fastapi import APIRouter, WebSocket

from ..schemas.rtc import RelayCredentials
from ..services.credentials import get_relay_credentials
from ..services.relay import SignalingRelay
from ..services.signaling import SignalingConnection

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/ice-servers", response_model=RelayCredentials, response_model_exclude_none=True)
async def ice_servers() -> RelayCredentials:
    """Return STUN/TURN servers for the browser's RTCPeerConnection."""

    return get_relay_credentials()


@router.websocket("/signaling")
async def signaling_endpoint(websocket: WebSocket) -> None:
    """Pair two participants in a room and relay their negotiation messages."""

    participant_id = websocket.query_params.get("participant_id") or str(uuid4())
    await websocket.accept()

    connection = SignalingConnection(connection_id=participant_id, send=websocket.send_json)
    relay = SignalingRelay(connection)
    logger.debug("Signaling connection %s opened", participant_id)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                raw = message.get("bytes")
            if raw is None:
                continue
            await relay.handle_frame(raw)
    finally:
        # room cleanup has to complete even when this task is cancelled
        await asyncio.shield(relay.close())
        logger.debug("Signaling connection %s closed", participant_id)
