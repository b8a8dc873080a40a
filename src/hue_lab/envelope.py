"""Decoding of Hue Bridge response envelopes.

The bridge answers in two shapes depending on the endpoint generation:

* legacy (``/api``): a list of ``{"success": ...}`` / ``{"error": ...}`` entries
* CLIP v2 (``/clip/v2/...``): an object ``{"errors": [...], "data": [...]}``

Both are normalized here so the domain client never looks at raw JSON.
A non-empty error list always fails the whole response.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, ValidationError

from hue_lab.errors import HueProtocolError, api_error_for
from hue_lab.models import (
    ApiError,
    ApplicationKey,
    CreatedKey,
    Device,
    DeviceId,
    LightServiceId,
    ResourceRef,
)


class _WireError(BaseModel):
    # CLIP v2 errors only carry a description.
    type: int = 0
    address: str = ""
    description: str = ""

    def to_api_error(self) -> ApiError:
        return ApiError(code=self.type, path=self.address, description=self.description)


class _WireSuccessKey(BaseModel):
    username: str = Field(..., min_length=1)
    clientkey: str | None = None


class _WireResourceRef(BaseModel):
    rid: str
    rtype: str


class _WireMetadata(BaseModel):
    name: str


class _WireProductData(BaseModel):
    product_name: str


class _WireDevice(BaseModel):
    id: str
    metadata: _WireMetadata
    product_data: _WireProductData
    services: list[_WireResourceRef] = Field(default_factory=list)


class _WireV2Envelope(BaseModel):
    errors: list[_WireError]
    data: list[Any]


def _validate(model: type[BaseModel], raw: Any, what: str) -> Any:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise HueProtocolError(f"Unexpected {what} from Hue Bridge: {exc.error_count()} validation error(s)") from exc


def parse_errors(raw: Any) -> list[ApiError]:
    """Collect the ``error`` entries of a legacy array envelope, in order.

    Anything that is not a list yields no errors.
    """
    if not isinstance(raw, list):
        return []
    errors: list[ApiError] = []
    for item in raw:
        if isinstance(item, dict) and "error" in item:
            errors.append(_validate(_WireError, item["error"], "error entry").to_api_error())
    return errors


def parse_create_key_result(raw: Any) -> CreatedKey:
    errors = parse_errors(raw)
    if errors:
        raise api_error_for(errors)

    if not isinstance(raw, list) or len(raw) != 1 or not isinstance(raw[0], dict):
        raise HueProtocolError("Unexpected create-key response from Hue Bridge: expected a single-entry list")
    entry = raw[0]
    if "success" not in entry:
        raise HueProtocolError("Malformed success envelope: missing 'success' key")

    success = _validate(_WireSuccessKey, entry["success"], "create-key success payload")
    return CreatedKey(username=ApplicationKey(success.username), clientkey=success.clientkey)


def _parse_v2_envelope(raw: Any, what: str) -> list[Any]:
    if not isinstance(raw, dict):
        raise HueProtocolError(f"Unexpected {what} from Hue Bridge: expected an object with 'errors' and 'data'")
    envelope = _validate(_WireV2Envelope, raw, what)
    if envelope.errors:
        raise api_error_for([e.to_api_error() for e in envelope.errors])
    return envelope.data


def _light_service_of(device: _WireDevice) -> LightServiceId | None:
    for service in device.services:
        if service.rtype == "light":
            return LightServiceId(service.rid)
    return None


def parse_device_list(raw: Any) -> list[Device]:
    devices: list[Device] = []
    for item in _parse_v2_envelope(raw, "device list"):
        wire = _validate(_WireDevice, item, "device entry")
        devices.append(
            Device(
                id=DeviceId(wire.id),
                name=wire.metadata.name,
                product_name=wire.product_data.product_name,
                light_service_id=_light_service_of(wire),
            )
        )
    return devices


def parse_update_result(raw: Any) -> list[ResourceRef]:
    refs: list[ResourceRef] = []
    for item in _parse_v2_envelope(raw, "update response"):
        wire = _validate(_WireResourceRef, item, "updated resource reference")
        refs.append(ResourceRef(rid=wire.rid, rtype=wire.rtype))
    return refs
