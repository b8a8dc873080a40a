import json

import httpx
import pytest

from hue_lab import cli
from hue_lab.errors import HueUsageError
from hue_lab.hue_client import HueClient

from conftest import device_payload


DEVICES = {
    "errors": [],
    "data": [
        device_payload("D1", "Kitchen Left", light_rid="L1"),
        device_payload("D2", "Kitchen Right", light_rid="L2"),
        device_payload("D3", "Hallway sensor", product_name="Hue motion sensor"),
    ],
}


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("HUE_BRIDGE_HOST", "HUE_APPLICATION_KEY", "HUE_BRIDGE_CA_FILE", "HUE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def bridge_requests(monkeypatch):
    seen: list[httpx.Request] = []
    responses = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return responses[(request.method, request.url.path)]

    def fake_open_hue(config):
        return HueClient(
            bridge_host=config.bridge_host,
            application_key=config.application_key,
            transport=httpx.MockTransport(handler),
        )

    monkeypatch.setattr(cli, "open_hue", fake_open_hue)
    return seen, responses


def test_list_prints_device_table(bridge_requests, capsys):
    seen, responses = bridge_requests
    responses[("GET", "/clip/v2/resource/device")] = httpx.Response(200, json=DEVICES)

    cli.main(["--bridge-host", "10.0.0.2", "--application-key", "k", "list"])

    out = capsys.readouterr().out.splitlines()
    assert out[0].split() == ["ID", "NAME", "PRODUCT", "LIGHT"]
    assert "Kitchen Left" in out[1] and out[1].endswith("L1")
    assert out[3].endswith("-")
    assert seen[0].url.host == "10.0.0.2"
    assert seen[0].headers["hue-application-key"] == "k"


def test_light_by_exact_id_from_env(bridge_requests, monkeypatch, capsys):
    monkeypatch.setenv("HUE_BRIDGE_HOST", "bridge.lan")
    monkeypatch.setenv("HUE_APPLICATION_KEY", "env-key")
    seen, responses = bridge_requests
    responses[("GET", "/clip/v2/resource/device")] = httpx.Response(200, json=DEVICES)
    responses[("PUT", "/clip/v2/resource/light/L2")] = httpx.Response(
        200, json={"errors": [], "data": [{"rid": "L2", "rtype": "light"}]}
    )

    cli.main(["light", "L2", "--on", "--dim", "150"])

    assert [(r.method, r.url.path) for r in seen] == [
        ("GET", "/clip/v2/resource/device"),
        ("PUT", "/clip/v2/resource/light/L2"),
    ]
    assert json.loads(seen[1].content) == {"on": {"on": True}, "dimming": {"brightness": 100.0}}
    assert "Light L2: on" in capsys.readouterr().out


def test_light_by_name_turns_off_without_dimming(bridge_requests):
    seen, responses = bridge_requests
    responses[("GET", "/clip/v2/resource/device")] = httpx.Response(200, json=DEVICES)
    responses[("PUT", "/clip/v2/resource/light/L1")] = httpx.Response(
        200, json={"errors": [], "data": [{"rid": "L1", "rtype": "light"}]}
    )

    cli.main(["--bridge-host", "b", "--application-key", "k", "light", "kitchen left", "--off"])

    assert json.loads(seen[-1].content) == {"on": {"on": False}}


def test_ambiguous_light_exits_1_with_one_line(bridge_requests, capsys):
    seen, responses = bridge_requests
    responses[("GET", "/clip/v2/resource/device")] = httpx.Response(200, json=DEVICES)

    with pytest.raises(SystemExit) as exc:
        cli.main(["--bridge-host", "b", "--application-key", "k", "light", "kitchen", "--on"])

    assert exc.value.code == 1
    err = capsys.readouterr().err.strip().splitlines()
    assert len(err) == 1
    assert err[0].startswith("error: light failed:")
    assert "Kitchen Left (D1)" in err[0] and "Kitchen Right (D2)" in err[0]
    assert all(r.method == "GET" for r in seen)


def test_create_key_link_button_not_pressed(bridge_requests, capsys):
    _, responses = bridge_requests
    responses[("POST", "/api")] = httpx.Response(
        200, json=[{"error": {"type": 101, "address": "", "description": "link button not pressed"}}]
    )

    with pytest.raises(SystemExit) as exc:
        cli.main(["--bridge-host", "b", "create-key"])

    assert exc.value.code == 1
    assert "press the button" in capsys.readouterr().err


def test_create_key_prints_key(bridge_requests, capsys):
    seen, responses = bridge_requests
    responses[("POST", "/api")] = httpx.Response(200, json=[{"success": {"username": "fresh-key"}}])

    cli.main(["--bridge-host", "b", "create-key"])

    assert "Application key: fresh-key" in capsys.readouterr().out
    assert json.loads(seen[0].content) == {"devicetype": "philips_hue_lab#cli"}


def test_missing_bridge_host_is_usage_error_before_network(bridge_requests, capsys):
    seen, _ = bridge_requests

    with pytest.raises(SystemExit) as exc:
        cli.main(["--application-key", "k", "list"])

    assert exc.value.code == 2
    assert "bridge" in capsys.readouterr().err.lower()
    assert seen == []


def test_missing_application_key_is_usage_error(bridge_requests):
    seen, _ = bridge_requests

    with pytest.raises(SystemExit) as exc:
        cli.main(["--bridge-host", "b", "light", "L1", "--on"])

    assert exc.value.code == 2
    assert seen == []


def test_on_and_off_are_mutually_exclusive(bridge_requests):
    seen, _ = bridge_requests

    with pytest.raises(SystemExit) as exc:
        cli.main(["--bridge-host", "b", "--application-key", "k", "light", "L1", "--on", "--off"])

    assert exc.value.code == 2
    assert seen == []


def test_light_requires_on_or_off(bridge_requests):
    with pytest.raises(SystemExit) as exc:
        cli.main(["--bridge-host", "b", "--application-key", "k", "light", "L1"])
    assert exc.value.code == 2


def test_power_from_args_rejects_conflicts():
    with pytest.raises(HueUsageError):
        cli.power_from_args(on=True, off=True)
    with pytest.raises(HueUsageError):
        cli.power_from_args(on=False, off=False)
    assert cli.power_from_args(on=False, off=True) is False
    assert cli.power_from_args(on=True, off=False) is True


def test_light_reports_clamped_brightness(bridge_requests, capsys):
    _, responses = bridge_requests
    responses[("GET", "/clip/v2/resource/device")] = httpx.Response(200, json=DEVICES)
    responses[("PUT", "/clip/v2/resource/light/L1")] = httpx.Response(
        200, json={"errors": [], "data": [{"rid": "L1", "rtype": "light"}]}
    )

    cli.main(["--bridge-host", "b", "--application-key", "k", "light", "L1", "--on", "--dim", "150"])

    out = capsys.readouterr().out
    assert "Light L1: on, brightness 100%" in out
    assert "150" not in out


def test_invalid_ca_file_is_usage_error_with_one_line(tmp_path, capsys):
    ca_file = tmp_path / "hue_bridge_ca.pem"
    ca_file.write_text("not a certificate")

    with pytest.raises(SystemExit) as exc:
        cli.main(["--bridge-host", "b", "--application-key", "k", "--ca-file", str(ca_file), "list"])

    assert exc.value.code == 2
    err = capsys.readouterr().err.strip().splitlines()
    assert len(err) == 1
    assert err[0].startswith("error: Invalid Hue Bridge root certificate")
