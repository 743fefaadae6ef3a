"""
In-memory collaborators for exercising the rollover without a Docker engine,
a registry or an SSH server. They follow the real adapters' error taxonomy.
"""
import hashlib
from dataclasses import replace
from typing import Dict, Iterable, List, Optional, Set

from rollover.domain.container import ContainerInstance, PortBinding
from rollover.domain.deployment import CommandResult, DeploymentTarget
from rollover.domain.errors import (
    AuthenticationError,
    BuildError,
    ContainerLookupError,
    FetchError,
    PushError,
    RemoteCommandError,
    RemoveError,
    StartError,
    StopError,
)
from rollover.domain.image import ImageReference, RegistryCredentials
from rollover.domain.ports import ContainerRuntime, ImageBuilder, ImageRegistry, RemoteCommandChannel


def _image_id(reference: str) -> str:
    return "sha256:" + hashlib.sha256(reference.encode()).hexdigest()


def _normalize(reference: str) -> str:
    return str(ImageReference.parse(reference))


class InMemoryImageRegistry(ImageRegistry):
    def __init__(
        self,
        images: Iterable[str] = (),
        credentials: Optional[RegistryCredentials] = None,
    ):
        self.images: Dict[str, str] = {}
        self.credentials = credentials
        self.reachable = True
        self.logged_in_as: Optional[str] = None
        self._revision = 0
        for reference in images:
            self.publish(reference)

    def publish(self, reference: str) -> str:
        """Make an image available, e.g. a new build of the same tag."""
        key = _normalize(reference)
        self._revision += 1
        self.images[key] = _image_id(f"{key}#{self._revision}")
        return self.images[key]

    async def login(self, credentials: RegistryCredentials) -> None:
        if not self.reachable:
            raise AuthenticationError("Registry unreachable")
        if self.credentials and (
            credentials.username != self.credentials.username
            or credentials.token != self.credentials.token
        ):
            raise AuthenticationError(f"Invalid credentials for {credentials.username}")
        self.logged_in_as = credentials.username

    async def push(self, reference: str) -> None:
        if not self.reachable:
            raise PushError("Registry unreachable")
        if self.credentials and self.logged_in_as is None:
            raise PushError(f"Push of {reference} denied: not logged in")
        self.publish(reference)

    async def pull(self, reference: str) -> str:
        if not self.reachable:
            raise FetchError(f"Registry unreachable while pulling {reference}")
        try:
            return self.images[_normalize(reference)]
        except KeyError:
            raise FetchError(f"Image not found: {reference}")


class InMemoryContainerRuntime(ContainerRuntime):
    """
    Container table of a single host. ``fail_on`` names operations
    (find / stop / remove / pull / run) that raise their step error.
    """

    def __init__(
        self,
        registry: InMemoryImageRegistry,
        networks: Iterable[str] = ("bridge",),
        fail_on: Iterable[str] = (),
    ):
        self.registry = registry
        self.networks: Set[str] = set(networks)
        self.fail_on: Set[str] = set(fail_on)
        self.containers: Dict[str, ContainerInstance] = {}
        self.image_cache: Dict[str, str] = {}
        self.calls: List[str] = []
        self._next_id = 1

    # -------------------------------
    # Containers
    # -------------------------------
    async def find(self, name: str) -> Optional[ContainerInstance]:
        self.calls.append("find")
        if "find" in self.fail_on:
            raise ContainerLookupError("Container runtime not responding", name=name)
        container = self.containers.get(name)
        return replace(container) if container else None

    async def stop(self, name: str, timeout: int = 10) -> None:
        self.calls.append("stop")
        if "stop" in self.fail_on:
            raise StopError(f"Timed out stopping {name}", name=name)
        if name in self.containers:
            self.containers[name].status = "exited"

    async def remove(self, name: str) -> None:
        self.calls.append("remove")
        if "remove" in self.fail_on:
            raise RemoveError(f"Could not remove {name}", name=name)
        container = self.containers.get(name)
        if container and container.is_running:
            raise RemoveError(f"Cannot remove running container {name}", name=name)
        self.containers.pop(name, None)

    async def run(
        self,
        *,
        name: str,
        image: str,
        network: str,
        port_binding: PortBinding,
    ) -> ContainerInstance:
        self.calls.append("run")
        if "run" in self.fail_on:
            raise StartError(f"Container {name} exited immediately", name=name)
        if name in self.containers:
            raise StartError(f"Container name {name} is already in use", name=name)
        if network not in self.networks:
            raise StartError(f"Network {network} not found", name=name)
        image_id = self.image_cache.get(_normalize(image))
        if image_id is None:
            raise StartError(f"No such image: {image}", name=name)
        for other in self.containers.values():
            if (
                other.is_running
                and other.port_binding
                and other.port_binding.host_port == port_binding.host_port
                and other.port_binding.protocol == port_binding.protocol
            ):
                raise StartError(
                    f"Bind for 0.0.0.0:{port_binding.host_port} failed: port is already allocated",
                    name=name,
                )

        container = ContainerInstance(
            name=name,
            image_reference=image,
            network=network,
            port_binding=port_binding,
            status="running",
            container_id=f"{self._next_id:012x}",
            image_id=image_id,
        )
        self._next_id += 1
        self.containers[name] = container
        return replace(container)

    # -------------------------------
    # Images
    # -------------------------------
    async def pull(self, reference: str) -> str:
        self.calls.append("pull")
        if "pull" in self.fail_on:
            raise FetchError(f"Registry unreachable while pulling {reference}")
        image_id = await self.registry.pull(reference)
        self.image_cache[_normalize(reference)] = image_id
        return image_id

    def running(self, name: str) -> List[ContainerInstance]:
        return [c for c in self.containers.values() if c.name == name and c.is_running]


class InMemoryImageBuilder(ImageBuilder):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.built: List[str] = []

    async def build(self, context_path: str, reference: str) -> str:
        if self.fail:
            raise BuildError(f"Build of {reference} failed")
        self.built.append(reference)
        return _image_id(f"{context_path}#{reference}#{len(self.built)}")


class InMemoryCommandChannel(RemoteCommandChannel):
    def __init__(self, result: Optional[CommandResult] = None, reachable: bool = True):
        self.result = result or CommandResult(exit_status=0)
        self.reachable = reachable
        self.target: Optional[DeploymentTarget] = None
        self.scripts: List[str] = []
        self.closed = False

    async def connect(self, target: DeploymentTarget) -> None:
        if not self.reachable:
            raise RemoteCommandError(f"Could not connect to {target.host}")
        self.target = target
        self.closed = False

    async def execute(self, script: str) -> CommandResult:
        if self.target is None:
            raise RemoteCommandError("Channel is not connected")
        self.scripts.append(script)
        return self.result

    async def close(self) -> None:
        self.target = None
        self.closed = True
