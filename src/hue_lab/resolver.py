from __future__ import annotations

import logging
from typing import Iterable

from hue_lab.bridge import BridgeClient
from hue_lab.errors import HueResolutionError
from hue_lab.models import Device, LightServiceId


logger = logging.getLogger("hue_lab.resolver")


def find_light_candidates(devices: Iterable[Device], token: str) -> list[Device]:
    """Devices with a light service whose name contains token, ignoring case."""
    needle = token.lower()
    return [d for d in devices if d.is_light and needle in d.name.lower()]


def resolve_light(bridge: BridgeClient, token: str) -> LightServiceId:
    """Turn a light id or a fragment of a device name into a light service id.

    An exact light service id always wins over name matches. A name fragment
    must match exactly one controllable device; several matches are an error
    rather than a guess.
    """
    devices = bridge.list_devices()

    for device in devices:
        if device.is_light and device.light_service_id == token:
            logger.debug("'%s' is a light service id", token)
            return device.light_service_id  # type: ignore[return-value]

    candidates = find_light_candidates(devices, token)
    if len(candidates) != 1:
        raise HueResolutionError(token=token, candidates=candidates)

    match = candidates[0]
    logger.debug("'%s' resolved to %s (%s)", token, match.name, match.light_service_id)
    return match.light_service_id  # type: ignore[return-value]
