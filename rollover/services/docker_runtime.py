import asyncio
from typing import Optional

from docker import DockerClient, from_env
from docker.errors import DockerException, NotFound
from docker.models.containers import Container

from rollover.core.logger import docker_logger
from rollover.domain.container import ContainerInstance, PortBinding
from rollover.domain.errors import (
    ContainerLookupError,
    RemoveError,
    StartError,
    StopError,
)
from rollover.domain.ports import ContainerRuntime
from rollover.services.docker_registry import DockerSDKRegistry


class DockerSDKRuntime(ContainerRuntime):
    def __init__(self, client: Optional[DockerClient] = None):
        self.docker_client = client or from_env()
        self.registry = DockerSDKRegistry(self.docker_client)

    # -------------------------------
    # Container lifecycle
    # -------------------------------
    async def find(self, name: str) -> Optional[ContainerInstance]:
        """
        The daemon's name filter is a substring match, so the list is
        narrowed to the container whose name is exactly ``name``.
        """
        try:
            candidates = await asyncio.to_thread(
                self.docker_client.containers.list,
                all=True,
                filters={"name": name},
            )
        except DockerException as e:
            raise ContainerLookupError(f"Docker container lookup failed: {e}", name=name) from e

        for container in candidates:
            if container.name.lstrip("/") == name:
                return self._to_instance(container)
        return None

    async def stop(self, name: str, timeout: int = 10) -> None:
        try:
            container = await asyncio.to_thread(self.docker_client.containers.get, name)
            await asyncio.to_thread(container.stop, timeout=timeout)
        except NotFound:
            docker_logger.warning(f"Container {name} disappeared before stop")
        except DockerException as e:
            raise StopError(f"Docker stop failed: {e}", name=name) from e

    async def remove(self, name: str) -> None:
        try:
            container = await asyncio.to_thread(self.docker_client.containers.get, name)
            await asyncio.to_thread(container.remove)
        except NotFound:
            docker_logger.warning(f"Container {name} disappeared before remove")
        except DockerException as e:
            raise RemoveError(f"Docker remove failed: {e}", name=name) from e

    async def run(
        self,
        *,
        name: str,
        image: str,
        network: str,
        port_binding: PortBinding,
    ) -> ContainerInstance:
        """Create then start, so a container that cannot start can be
        removed again instead of holding on to ``name``."""
        try:
            container = await asyncio.to_thread(
                self.docker_client.containers.create,
                image,
                name=name,
                detach=True,
                network=network,
                ports=port_binding.as_docker_ports(),
            )
        except DockerException as e:
            raise StartError(f"Docker create failed: {e}", name=name) from e

        try:
            await asyncio.to_thread(container.start)
            await asyncio.to_thread(container.reload)
        except DockerException as e:
            docker_logger.error(f"Container {name} failed to start, removing it: {e}")
            try:
                await asyncio.to_thread(container.remove, force=True)
            except DockerException as cleanup_error:
                docker_logger.error(f"Could not remove failed container {name}: {cleanup_error}")
            raise StartError(f"Docker start failed: {e}", name=name) from e

        docker_logger.info(f"Docker container created: {name} ({container.id})")
        return self._to_instance(container)

    # -------------------------------
    # Image lifecycle
    # -------------------------------
    async def pull(self, reference: str) -> str:
        """Pull an image by exact reference through the registry adapter."""
        return await self.registry.pull(reference)

    # -------------------------------
    # Helpers
    # -------------------------------
    @staticmethod
    def _to_instance(container: Container) -> ContainerInstance:
        attrs = container.attrs or {}
        host_config = attrs.get("HostConfig", {}) or {}

        port_binding = None
        for container_port_proto, host_bindings in (host_config.get("PortBindings") or {}).items():
            if not host_bindings or not host_bindings[0].get("HostPort"):
                continue
            port, _, proto = container_port_proto.partition("/")
            port_binding = PortBinding(int(host_bindings[0]["HostPort"]), int(port), proto or "tcp")
            break

        return ContainerInstance(
            name=container.name.lstrip("/"),
            image_reference=attrs.get("Config", {}).get("Image", ""),
            network=host_config.get("NetworkMode"),
            port_binding=port_binding,
            status=container.status,
            container_id=container.id,
            image_id=attrs.get("Image"),
        )
