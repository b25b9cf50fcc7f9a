"""ICE server catalog handed to browser clients."""
from __future__ import annotations

from ..core.config import Settings, settings as default_settings
from ..schemas.rtc import IceServer, RelayCredentials

PUBLIC_STUN_URLS = ("stun:stun.l.google.com:19302", "stun:stun1.l.google.com:19302")


def get_relay_credentials(settings: Settings | None = None) -> RelayCredentials:
    """Build the ICE server list from configuration.

    Independent of rooms and tokens, so callers may cache the result.
    """

    config = settings or default_settings
    ice_servers: list[IceServer] = []

    if config.stun_urls:
        ice_servers.append(IceServer(urls=list(config.stun_urls)))

    if config.turn_urls:
        ice_servers.append(
            IceServer(
                urls=list(config.turn_urls),
                username=config.turn_username or None,
                credential=config.turn_credential or None,
            )
        )

    if not ice_servers:
        ice_servers.append(IceServer(urls=list(PUBLIC_STUN_URLS)))

    return RelayCredentials(ice_servers=ice_servers)
