from __future__ import annotations

import logging
from typing import Any

from hue_lab.config import DEVICE_TYPE
from hue_lab.envelope import parse_create_key_result, parse_device_list, parse_update_result
from hue_lab.hue_client import HueClient
from hue_lab.models import CreatedKey, Device, LightCommand, LightServiceId


logger = logging.getLogger("hue_lab.bridge")


def clamp_brightness(value: float) -> float:
    return max(0.0, min(100.0, float(value)))


def build_light_payload(command: LightCommand) -> dict[str, Any]:
    payload: dict[str, Any] = {"on": {"on": command.on}}
    # Sending dimming on a plain on/off toggle would reset the brightness.
    if command.brightness is not None:
        payload["dimming"] = {"brightness": clamp_brightness(command.brightness)}
    return payload


class BridgeClient:
    def __init__(self, *, hue: HueClient, devicetype: str = DEVICE_TYPE) -> None:
        self.hue = hue
        self.devicetype = devicetype

    def create_application_key(self) -> CreatedKey:
        """Register this application with the bridge.

        Only succeeds within 30 seconds of pressing the bridge link button;
        otherwise raises LinkButtonNotPressedError.
        """
        logger.info("Requesting application key for %s", self.devicetype)
        response = self.hue.post_json("/api", json_body={"devicetype": self.devicetype}, authenticated=False)
        return parse_create_key_result(response)

    def list_devices(self) -> list[Device]:
        response = self.hue.get_json("/clip/v2/resource/device")
        devices = parse_device_list(response)
        logger.info("Bridge reported %d device(s)", len(devices))
        return devices

    def set_light_state(
        self,
        light_id: LightServiceId,
        *,
        on: bool,
        brightness: int | None = None,
    ) -> None:
        self.send(LightCommand(target=light_id, on=on, brightness=brightness))

    def send(self, command: LightCommand) -> None:
        payload = build_light_payload(command)
        logger.info("Setting light %s: %s", command.target, payload)
        response = self.hue.put_json(f"/clip/v2/resource/light/{command.target}", json_body=payload)
        parse_update_result(response)
