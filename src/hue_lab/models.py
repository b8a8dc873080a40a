from __future__ import annotations

from dataclasses import dataclass
from typing import NewType


BridgeAddress = NewType("BridgeAddress", str)
ApplicationKey = NewType("ApplicationKey", str)
DeviceId = NewType("DeviceId", str)
LightServiceId = NewType("LightServiceId", str)


@dataclass(frozen=True)
class ApiError:
    """An error entry reported by the bridge inside a response envelope."""

    code: int
    path: str
    description: str


@dataclass(frozen=True)
class CreatedKey:
    username: ApplicationKey
    clientkey: str | None = None


@dataclass(frozen=True)
class Device:
    id: DeviceId
    name: str
    product_name: str
    # None when the device exposes no controllable light service.
    light_service_id: LightServiceId | None = None

    @property
    def is_light(self) -> bool:
        return self.light_service_id is not None


@dataclass(frozen=True)
class ResourceRef:
    rid: str
    rtype: str


@dataclass(frozen=True)
class LightCommand:
    target: LightServiceId
    on: bool
    brightness: int | None = None
