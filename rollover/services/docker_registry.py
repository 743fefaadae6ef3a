import asyncio
from typing import Optional

from docker import DockerClient, from_env
from docker import errors as docker_errors

from rollover.core.logger import docker_logger
from rollover.domain.errors import AuthenticationError, BuildError, FetchError, PushError
from rollover.domain.image import ImageReference, RegistryCredentials
from rollover.domain.ports import ImageBuilder, ImageRegistry


class DockerSDKRegistry(ImageRegistry):
    """Registry access through the local engine's credentials store."""

    def __init__(self, client: Optional[DockerClient] = None):
        self.docker_client = client or from_env()
        self._credentials: Optional[RegistryCredentials] = None

    async def login(self, credentials: RegistryCredentials) -> None:
        docker_logger.info(
            f"Logging in to {credentials.registry or 'Docker Hub'} as {credentials.username}"
        )
        try:
            await asyncio.to_thread(
                self.docker_client.login,
                username=credentials.username,
                password=credentials.token,
                registry=credentials.registry,
            )
        except docker_errors.DockerException as e:
            raise AuthenticationError(f"Registry login failed for {credentials.username}: {e}") from e
        self._credentials = credentials

    async def push(self, reference: str) -> None:
        parsed = ImageReference.parse(reference)
        auth_config = None
        if self._credentials:
            auth_config = {
                "username": self._credentials.username,
                "password": self._credentials.token,
            }

        def _push() -> None:
            for line in self.docker_client.images.push(
                parsed.repository,
                tag=parsed.tag or None,
                stream=True,
                decode=True,
                auth_config=auth_config,
            ):
                if "error" in line:
                    raise PushError(f"Push of {reference} failed: {line['error']}")
                if line.get("status") and line.get("id") is None:
                    docker_logger.debug(line["status"])

        docker_logger.info(f"Pushing image: {reference}")
        try:
            await asyncio.to_thread(_push)
        except docker_errors.DockerException as e:
            raise PushError(f"Push of {reference} failed: {e}") from e

    async def pull(self, reference: str) -> str:
        parsed = ImageReference.parse(reference)
        try:
            image = await asyncio.to_thread(
                self.docker_client.images.pull, parsed.repository, tag=parsed.tag or None
            )
        except docker_errors.DockerException as e:
            raise FetchError(f"Failed to pull image {reference}: {e}") from e
        if isinstance(image, list):
            image = image[0]
        return image.id


class DockerSDKImageBuilder(ImageBuilder):
    def __init__(self, client: Optional[DockerClient] = None):
        self.docker_client = client or from_env()

    async def build(self, context_path: str, reference: str) -> str:
        docker_logger.info(f"Building image {reference} from {context_path}")
        try:
            image, _logs = await asyncio.to_thread(
                self.docker_client.images.build,
                path=str(context_path),
                tag=reference,
                rm=True,
            )
        except docker_errors.BuildError as e:
            raise BuildError(f"Docker build of {reference} failed: {e.msg}") from e
        except (docker_errors.DockerException, TypeError) as e:
            raise BuildError(f"Docker build of {reference} failed: {e}") from e
        return image.id
