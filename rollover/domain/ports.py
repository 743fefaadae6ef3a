from typing import Protocol

from rollover.domain.container import ContainerInstance, PortBinding
from rollover.domain.deployment import CommandResult, DeploymentTarget
from rollover.domain.image import RegistryCredentials


class ContainerRuntime(Protocol):
    # -------------------------------
    # Containers
    # -------------------------------
    async def find(self, name: str) -> ContainerInstance | None:
        """Return the container with exactly this name, running or not."""
        ...

    async def stop(self, name: str, timeout: int = 10) -> None:
        """Stop a container, killing it once the timeout expires."""
        ...

    async def remove(self, name: str) -> None:
        """Remove a container and release its name."""
        ...

    async def run(
        self,
        *,
        name: str,
        image: str,
        network: str,
        port_binding: PortBinding,
    ) -> ContainerInstance:
        """Create and start a detached container."""
        ...

    # -------------------------------
    # Images
    # -------------------------------
    async def pull(self, reference: str) -> str:
        """Fetch an image into the local cache. Returns the image ID."""
        ...


class ImageRegistry(Protocol):
    async def login(self, credentials: RegistryCredentials) -> None: ...

    async def push(self, reference: str) -> None: ...

    async def pull(self, reference: str) -> str: ...


class ImageBuilder(Protocol):
    async def build(self, context_path: str, reference: str) -> str:
        """Build and tag an image from a build context. Returns the image ID."""
        ...


class RemoteCommandChannel(Protocol):
    async def connect(self, target: DeploymentTarget) -> None: ...

    async def execute(self, script: str) -> CommandResult: ...

    async def close(self) -> None: ...
