from typing import Any, Callable

import httpx
import pytest

from hue_lab.hue_client import HueClient


def device_payload(
    device_id: str,
    name: str,
    *,
    light_rid: str | None = None,
    product_name: str = "Hue color lamp",
) -> dict[str, Any]:
    services = [{"rid": f"zb-{device_id}", "rtype": "zigbee_connectivity"}]
    if light_rid is not None:
        services.insert(0, {"rid": light_rid, "rtype": "light"})
    return {
        "id": device_id,
        "type": "device",
        "metadata": {"name": name, "archetype": "sultan_bulb"},
        "product_data": {"product_name": product_name, "model_id": "LCA001"},
        "services": services,
    }


@pytest.fixture
def make_hue() -> Callable[..., HueClient]:
    clients: list[HueClient] = []

    def factory(handler, *, application_key: str | None = "app-key-1") -> HueClient:
        client = HueClient(
            bridge_host="bridge.test",
            application_key=application_key,
            transport=httpx.MockTransport(handler),
        )
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()
