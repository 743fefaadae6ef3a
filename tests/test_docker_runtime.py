# tests/test_docker_runtime.py
import pytest
from unittest.mock import AsyncMock, MagicMock

from docker.errors import APIError, ImageNotFound, NotFound

from rollover.domain.container import PortBinding
from rollover.domain.errors import (
    ContainerLookupError,
    FetchError,
    RemoveError,
    StartError,
    StopError,
)
from rollover.services.docker_runtime import DockerSDKRuntime


def make_docker_container(name, status="running", image="acme/web:1.0"):
    container = MagicMock()
    container.name = name
    container.id = f"{name}-id"
    container.status = status
    container.attrs = {
        "Image": "sha256:abc",
        "Config": {"Image": image},
        "HostConfig": {
            "NetworkMode": "app_app-network",
            "PortBindings": {"3000/tcp": [{"HostIp": "", "HostPort": "3000"}]},
        },
    }
    return container


@pytest.mark.asyncio
async def test_find_returns_exact_name_match_only():
    client = MagicMock()
    client.containers.list.return_value = [
        make_docker_container("web-old"),
        make_docker_container("web", status="exited"),
    ]
    runtime = DockerSDKRuntime(client)

    found = await runtime.find("web")

    client.containers.list.assert_called_once_with(all=True, filters={"name": "web"})
    assert found.name == "web"
    assert found.status == "exited"
    assert found.image_reference == "acme/web:1.0"
    assert found.network == "app_app-network"
    assert found.port_binding == PortBinding(3000, 3000)


@pytest.mark.asyncio
async def test_find_returns_none_when_only_prefixes_match():
    client = MagicMock()
    client.containers.list.return_value = [make_docker_container("web-old")]

    assert await DockerSDKRuntime(client).find("web") is None


@pytest.mark.asyncio
async def test_find_raises_lookup_error_when_daemon_fails():
    client = MagicMock()
    client.containers.list.side_effect = APIError("daemon unavailable")

    with pytest.raises(ContainerLookupError):
        await DockerSDKRuntime(client).find("web")


@pytest.mark.asyncio
async def test_stop_passes_timeout_and_remove_releases_name():
    client = MagicMock()
    container = make_docker_container("web")
    client.containers.get.return_value = container
    runtime = DockerSDKRuntime(client)

    await runtime.stop("web", timeout=25)
    await runtime.remove("web")

    container.stop.assert_called_once_with(timeout=25)
    container.remove.assert_called_once_with()


@pytest.mark.asyncio
async def test_stop_and_remove_ignore_vanished_container():
    client = MagicMock()
    client.containers.get.side_effect = NotFound("gone")
    runtime = DockerSDKRuntime(client)

    await runtime.stop("web")
    await runtime.remove("web")


@pytest.mark.asyncio
async def test_stop_and_remove_errors_are_translated():
    client = MagicMock()
    container = make_docker_container("web")
    container.stop.side_effect = APIError("cannot stop")
    container.remove.side_effect = APIError("cannot remove")
    client.containers.get.return_value = container
    runtime = DockerSDKRuntime(client)

    with pytest.raises(StopError):
        await runtime.stop("web")
    with pytest.raises(RemoveError):
        await runtime.remove("web")


@pytest.mark.asyncio
async def test_pull_uses_repository_and_tag():
    client = MagicMock()
    client.images.pull.return_value = MagicMock(id="sha256:new")

    image_id = await DockerSDKRuntime(client).pull("registry.local:5000/acme/web:2.0")

    client.images.pull.assert_called_once_with("registry.local:5000/acme/web", tag="2.0")
    assert image_id == "sha256:new"


@pytest.mark.asyncio
async def test_pull_of_unknown_image_is_fetch_error():
    client = MagicMock()
    client.images.pull.side_effect = ImageNotFound("manifest unknown")

    with pytest.raises(FetchError):
        await DockerSDKRuntime(client).pull("acme/web:missing")


@pytest.mark.asyncio
async def test_pull_goes_through_registry_adapter():
    client = MagicMock()
    runtime = DockerSDKRuntime(client)
    runtime.registry.pull = AsyncMock(return_value="sha256:new")

    assert runtime.registry.docker_client is client
    assert await runtime.pull("acme/web:2.0") == "sha256:new"
    runtime.registry.pull.assert_awaited_once_with("acme/web:2.0")
    client.images.pull.assert_not_called()


@pytest.mark.asyncio
async def test_run_creates_and_starts_detached_container():
    client = MagicMock()
    container = make_docker_container("web", image="acme/web:2.0")
    client.containers.create.return_value = container

    instance = await DockerSDKRuntime(client).run(
        name="web",
        image="acme/web:2.0",
        network="app_app-network",
        port_binding=PortBinding(3000, 3000),
    )

    client.containers.create.assert_called_once_with(
        "acme/web:2.0",
        name="web",
        detach=True,
        network="app_app-network",
        ports={"3000/tcp": 3000},
    )
    container.start.assert_called_once_with()
    assert instance.name == "web"
    assert instance.is_running
    assert instance.container_id == "web-id"


@pytest.mark.asyncio
async def test_run_removes_container_that_fails_to_start():
    client = MagicMock()
    container = make_docker_container("web", status="created")
    container.start.side_effect = APIError("port is already allocated")
    client.containers.create.return_value = container

    with pytest.raises(StartError):
        await DockerSDKRuntime(client).run(
            name="web",
            image="acme/web:2.0",
            network="app_app-network",
            port_binding=PortBinding(3000, 3000),
        )

    container.remove.assert_called_once_with(force=True)


@pytest.mark.asyncio
async def test_run_on_missing_network_is_start_error():
    client = MagicMock()
    client.containers.create.side_effect = NotFound("network app_app-network not found")

    with pytest.raises(StartError):
        await DockerSDKRuntime(client).run(
            name="web",
            image="acme/web:2.0",
            network="app_app-network",
            port_binding=PortBinding(3000, 3000),
        )
