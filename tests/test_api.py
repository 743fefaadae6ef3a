# tests/test_api.py
import pytest
from fastapi.testclient import TestClient

from rollover.main import create_app
from rollover.services.in_memory import InMemoryContainerRuntime, InMemoryImageRegistry
from rollover.services.rollover_service import RolloverService

PAYLOAD = {
    "container_name": "web",
    "image_reference": "acme/web:1.0",
    "network": "app_app-network",
    "host_port": 3000,
    "container_port": 3000,
}


@pytest.fixture
def runtime():
    registry = InMemoryImageRegistry(images=["acme/web:1.0", "acme/web:2.0", "acme/api:1.0"])
    return InMemoryContainerRuntime(registry, networks=["app_app-network"])


@pytest.fixture
def client(runtime):
    return TestClient(create_app(RolloverService(runtime)))


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_rollover_then_replace(client):
    first = client.post("/rollovers", json=PAYLOAD)
    assert first.status_code == 200
    assert first.json()["replaced"] is None
    assert first.json()["steps"] == ["lookup", "fetch", "start"]

    second = client.post("/rollovers", json={**PAYLOAD, "image_reference": "acme/web:2.0"})
    assert second.status_code == 200
    body = second.json()
    assert body["container"]["image_reference"] == "acme/web:2.0"
    assert body["container"]["port_binding"] == "3000:3000"
    assert body["replaced"]["image_reference"] == "acme/web:1.0"

    container = client.get("/containers/web")
    assert container.status_code == 200
    assert container.json()["status"] == "running"


def test_unknown_container_is_404(client):
    assert client.get("/containers/missing").status_code == 404


def test_fetch_failure_is_bad_gateway(client):
    response = client.post("/rollovers", json={**PAYLOAD, "image_reference": "acme/web:missing"})

    assert response.status_code == 502
    assert response.json()["detail"]["step"] == "fetch"


def test_port_conflict_is_conflict(client):
    client.post("/rollovers", json={**PAYLOAD, "container_name": "api", "image_reference": "acme/api:1.0"})

    response = client.post("/rollovers", json=PAYLOAD)

    assert response.status_code == 409
    assert response.json()["detail"]["step"] == "start"
    assert client.get("/containers/api").json()["status"] == "running"


@pytest.mark.parametrize(
    "override",
    [
        {"container_name": ""},
        {"container_name": "bad name"},
        {"host_port": 0},
        {"container_port": 70000},
        {"image_reference": "acme/web:"},
    ],
)
def test_invalid_requests_are_rejected(client, override):
    assert client.post("/rollovers", json={**PAYLOAD, **override}).status_code == 422


def test_render_script(client):
    response = client.post("/rollovers/script", json=PAYLOAD)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "docker pull acme/web:1.0" in response.text
