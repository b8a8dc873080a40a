from __future__ import annotations

import json
import logging
import ssl
from pathlib import Path
from typing import Any

import httpx

from hue_lab.errors import (
    HueConnectionError,
    HueInvalidJSONError,
    HueUpstreamError,
    HueUsageError,
)
from hue_lab.models import ApplicationKey, BridgeAddress


APPLICATION_KEY_HEADER = "hue-application-key"

_REDACTED_FIELDS = frozenset({"username", "clientkey"})


def build_ssl_context(ca_file: Path) -> ssl.SSLContext:
    """Trust exactly the bridge root CA, without hostname checks.

    The bridge certificate is issued for the bridge id, not for its LAN
    address, so the CN can never match. The chain is still verified
    against the pinned root.
    """
    if not ca_file.is_file():
        raise HueUsageError(
            f"Hue Bridge root certificate not found at {ca_file} (set HUE_BRIDGE_CA_FILE or --ca-file)"
        )
    try:
        context = ssl.create_default_context(cafile=str(ca_file))
    except ssl.SSLError as exc:
        raise HueUsageError(f"Invalid Hue Bridge root certificate {ca_file}: {exc}") from exc
    context.check_hostname = False
    context.verify_mode = ssl.CERT_REQUIRED
    return context


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: ("***" if k in _REDACTED_FIELDS else _redact(v)) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact(v) for v in value]
    return value


class HueClient:
    def __init__(
        self,
        *,
        bridge_host: BridgeAddress | None,
        application_key: ApplicationKey | None = None,
        ca_file: Path | None = None,
        transport: httpx.BaseTransport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._bridge_host = bridge_host
        self._application_key = application_key
        self._ca_file = ca_file
        self._transport = transport
        self._log = logger or logging.getLogger("hue_lab.http")
        self._client: httpx.Client | None = None

    def __enter__(self) -> "HueClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._client:
            self._client.close()
            self._client = None

    def _base_url(self) -> str:
        if not self._bridge_host:
            raise HueUsageError("Hue Bridge address not configured (set HUE_BRIDGE_HOST or --bridge-host)")
        return f"https://{self._bridge_host}"

    def _get_client(self) -> httpx.Client:
        if self._client:
            return self._client
        base_url = self._base_url()
        if self._transport is not None:
            # Injected transports (tests) never open a TLS connection.
            verify: ssl.SSLContext | bool = True
        else:
            if self._ca_file is None:
                raise HueUsageError("Hue Bridge root certificate not configured")
            verify = build_ssl_context(self._ca_file)
        self._client = httpx.Client(base_url=base_url, verify=verify, transport=self._transport)
        return self._client

    def _auth_headers(self, authenticated: bool) -> dict[str, str]:
        if not authenticated:
            return {}
        if not self._application_key:
            raise HueUsageError("Application key not configured (run create-key, then set HUE_APPLICATION_KEY)")
        return {APPLICATION_KEY_HEADER: self._application_key}

    def request_json(
        self,
        *,
        method: str,
        path: str,
        json_body: Any | None = None,
        authenticated: bool = True,
    ) -> Any:
        headers = self._auth_headers(authenticated)
        client = self._get_client()

        request = client.build_request(method, path, json=json_body, headers=headers)
        self._log.debug("%s %s", method, request.url)
        if json_body is not None:
            self._log.debug("request body: %s", json.dumps(_redact(json_body)))

        try:
            resp = client.send(request)
        except httpx.RequestError as exc:
            raise HueConnectionError(f"Cannot reach Hue Bridge at {self._bridge_host}: {exc}") from exc

        try:
            body = resp.json()
        except ValueError as exc:
            self._log.debug("response %s (non-JSON): %s", resp.status_code, resp.text)
            if resp.is_success:
                raise HueInvalidJSONError(status_code=resp.status_code, text=resp.text) from exc
            raise HueUpstreamError(status_code=resp.status_code, body=resp.text) from exc

        self._log.debug("response %s: %s", resp.status_code, json.dumps(_redact(body)))
        if not resp.is_success:
            raise HueUpstreamError(status_code=resp.status_code, body=body)
        return body

    def get_json(self, path: str) -> Any:
        return self.request_json(method="GET", path=path)

    def put_json(self, path: str, *, json_body: Any) -> Any:
        return self.request_json(method="PUT", path=path, json_body=json_body)

    def post_json(self, path: str, *, json_body: Any, authenticated: bool = True) -> Any:
        return self.request_json(method="POST", path=path, json_body=json_body, authenticated=authenticated)
