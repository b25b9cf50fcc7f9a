"""In-memory short-link storage for room invitations."""
from __future__ import annotations

import asyncio
import logging
import secrets
import string
import time
from contextlib import suppress
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..core.config import settings
from ..schemas.rooms import LinkKind

logger = logging.getLogger(__name__)

CODE_ALPHABET = string.ascii_letters + string.digits


@dataclass(slots=True)
class ShortLink:
    code: str
    room_id: str
    token: str
    kind: LinkKind
    expires_at: float

    def is_live(self, now: float) -> bool:
        return self.expires_at > now


class ShortLinkStore:
    """Map short codes to room invitations with absolute expiry.

    Resolution checks expiry itself; the periodic sweep only reclaims memory.
    """

    def __init__(
        self,
        code_length: int | None = None,
        ttl_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._code_length = code_length
        self._ttl = ttl_seconds
        self._clock = clock
        self._links: Dict[str, ShortLink] = {}
        self._sweep_task: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        return len(self._links)

    def create(self, kind: LinkKind, room_id: str, token: str, ttl: int | None = None) -> ShortLink:
        ttl_seconds = ttl if ttl is not None else (self._ttl or settings.short_link_ttl_seconds)
        code = self._fresh_code()
        link = ShortLink(
            code=code,
            room_id=room_id,
            token=token,
            kind=LinkKind(kind),
            expires_at=self._clock() + ttl_seconds,
        )
        self._links[code] = link
        return link

    def resolve(self, code: str) -> Optional[ShortLink]:
        link = self._links.get(code)
        if link is None or not link.is_live(self._clock()):
            return None
        return link

    def sweep(self) -> int:
        """Drop every expired entry and return how many were removed."""

        now = self._clock()
        expired = [code for code, link in list(self._links.items()) if not link.is_live(now)]
        for code in expired:
            self._links.pop(code, None)
        if expired:
            logger.debug("Swept %d expired short links", len(expired))
        return len(expired)

    # ---- background sweep ----

    def start_sweeper(self, interval: float | None = None) -> None:
        if self._sweep_task is not None and not self._sweep_task.done():
            return
        period = interval or settings.short_link_sweep_interval_seconds
        self._sweep_task = asyncio.create_task(self._sweep_loop(period))

    async def stop_sweeper(self) -> None:
        if self._sweep_task is None:
            return
        self._sweep_task.cancel()
        with suppress(asyncio.CancelledError):
            await self._sweep_task
        self._sweep_task = None

    async def _sweep_loop(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                self.sweep()
            except Exception:  # noqa: BLE001 - one bad pass must not stop the sweeper
                logger.exception("Short link sweep failed")

    def _fresh_code(self) -> str:
        length = self._code_length or settings.short_link_code_length
        while True:
            code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
            if code not in self._links:
                return code


short_links = ShortLinkStore()
