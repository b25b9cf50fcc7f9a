"""Relay-forcing policy evaluated when a room is paired."""
from __future__ import annotations

from typing import Iterable

from ..schemas.signaling import DeviceInfo

FORCE_RELAY_REASON = "both peers are on a restricted mobile platform"


def should_force_relay(devices: Iterable[DeviceInfo]) -> bool:
    """Return True when every paired device is in the restricted mobile class."""

    flags = [device.is_mobile_restricted_class for device in devices]
    return len(flags) == 2 and all(flags)
