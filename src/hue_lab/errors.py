from __future__ import annotations

from typing import Any, Sequence

from hue_lab.models import ApiError, Device


LINK_BUTTON_NOT_PRESSED = 101


class HueError(Exception):
    """Base class for every failure surfaced by hue_lab."""


class HueUsageError(HueError):
    pass


class HueTransportError(HueError):
    pass


class HueConnectionError(HueTransportError):
    pass


class HueUpstreamError(HueTransportError):
    def __init__(self, *, status_code: int, body: Any) -> None:
        message = f"Hue Bridge returned HTTP {status_code}"
        description = _first_description(body)
        if description:
            message = f"{message}: {description}"
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class HueInvalidJSONError(HueTransportError):
    def __init__(self, *, status_code: int, text: str) -> None:
        super().__init__(f"Hue Bridge returned a non-JSON body (HTTP {status_code})")
        self.status_code = status_code
        self.text = text


class HueProtocolError(HueError):
    pass


class HueApiError(HueError):
    def __init__(self, errors: Sequence[ApiError], *, message: str | None = None) -> None:
        if not errors:
            raise ValueError("HueApiError requires at least one ApiError")
        self.errors = list(errors)
        first = self.errors[0]
        super().__init__(message or f"Hue Bridge error {first.code} at {first.path or '/'}: {first.description}")

    @property
    def error(self) -> ApiError:
        return self.errors[0]


class LinkButtonNotPressedError(HueApiError):
    def __init__(self, errors: Sequence[ApiError]) -> None:
        super().__init__(
            errors,
            message="Link button not pressed: press the button on the Hue Bridge and run create-key again",
        )


class HueResolutionError(HueError):
    def __init__(self, *, token: str, candidates: Sequence[Device] = ()) -> None:
        self.token = token
        self.candidates = list(candidates)
        if not self.candidates:
            message = f"No light found matching '{token}'"
        else:
            listed = ", ".join(f"{d.name} ({d.id})" for d in self.candidates)
            message = (
                f"Light name '{token}' is ambiguous, matches: {listed}. "
                "Use the exact light id instead"
            )
        super().__init__(message)


def api_error_for(errors: Sequence[ApiError]) -> HueApiError:
    if errors and errors[0].code == LINK_BUTTON_NOT_PRESSED:
        return LinkButtonNotPressedError(errors)
    return HueApiError(errors)


def _first_description(body: Any) -> str | None:
    # CLIP v2: {"errors": [{"description": ...}]}, legacy: [{"error": {...}}]
    entries: list[Any] = []
    if isinstance(body, dict) and isinstance(body.get("errors"), list):
        entries = body["errors"]
    elif isinstance(body, list):
        entries = [item.get("error") for item in body if isinstance(item, dict)]
    for entry in entries:
        if isinstance(entry, dict) and isinstance(entry.get("description"), str):
            return entry["description"]
    return None
