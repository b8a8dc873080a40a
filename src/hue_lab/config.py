from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import os

from hue_lab.models import ApplicationKey, BridgeAddress


APP_NAME = "philips_hue_lab"
USER_LABEL = "cli"
DEVICE_TYPE = f"{APP_NAME}#{USER_LABEL}"

DEFAULT_CA_FILE = Path.home() / ".config" / APP_NAME / "hue_bridge_ca.pem"


def _strip_or_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class AppConfig:
    bridge_host: Optional[BridgeAddress]
    application_key: Optional[ApplicationKey]
    ca_file: Path
    log_level: str

    @staticmethod
    def from_env() -> "AppConfig":
        bridge_host = _strip_or_none(os.getenv("HUE_BRIDGE_HOST"))
        application_key = _strip_or_none(os.getenv("HUE_APPLICATION_KEY"))
        ca_file = _strip_or_none(os.getenv("HUE_BRIDGE_CA_FILE"))
        return AppConfig(
            bridge_host=BridgeAddress(bridge_host) if bridge_host else None,
            application_key=ApplicationKey(application_key) if application_key else None,
            ca_file=Path(ca_file).expanduser() if ca_file else DEFAULT_CA_FILE,
            log_level=(os.getenv("HUE_LOG_LEVEL") or "WARNING").upper(),
        )
