from pathlib import Path

import aiofiles
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from rollover.core.logger import config_logger
from rollover.domain.container import PortBinding
from rollover.domain.deployment import DeploymentTarget, RolloverSpec
from rollover.domain.image import RegistryCredentials


class Settings(BaseSettings):
    # -------------------------------
    # Rollover
    # -------------------------------
    CONTAINER_NAME: str = "rethink-practice-fe"
    IMAGE_REFERENCE: str = "thiettruong/rethink-practice-fe:latest"
    NETWORK: str = "app_app-network"
    HOST_PORT: int = Field(default=3000, ge=1, le=65535)
    CONTAINER_PORT: int = Field(default=3000, ge=1, le=65535)
    STOP_TIMEOUT: int = Field(default=10, ge=0, description="Seconds before a stop turns into a kill")

    # -------------------------------
    # Pipeline
    # -------------------------------
    PRIMARY_BRANCH: str = "main"
    BUILD_CONTEXT: Path = Field(default=Path("."), description="Directory holding the Dockerfile")

    REGISTRY_USERNAME: str = ""
    REGISTRY_TOKEN: SecretStr = SecretStr("")
    REGISTRY_URL: str | None = None

    SSH_HOST: str = ""
    SSH_USERNAME: str = ""
    SSH_PORT: int = 22
    SSH_PRIVATE_KEY: SecretStr = SecretStr("")
    SSH_PRIVATE_KEY_PATH: Path | None = None
    SSH_CONNECT_ATTEMPTS: int = Field(default=3, ge=1)

    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="ROLLOVER_",
        env_file=".env",
        extra="ignore",
    )

    def rollover_spec(self) -> RolloverSpec:
        return RolloverSpec(
            container_name=self.CONTAINER_NAME,
            image_reference=self.IMAGE_REFERENCE,
            network=self.NETWORK,
            port_binding=PortBinding(self.HOST_PORT, self.CONTAINER_PORT),
            stop_timeout=self.STOP_TIMEOUT,
        )

    def registry_credentials(self) -> RegistryCredentials:
        if not self.REGISTRY_USERNAME or not self.REGISTRY_TOKEN.get_secret_value():
            raise ValueError("ROLLOVER_REGISTRY_USERNAME and ROLLOVER_REGISTRY_TOKEN are required")
        return RegistryCredentials(
            username=self.REGISTRY_USERNAME,
            token=self.REGISTRY_TOKEN.get_secret_value(),
            registry=self.REGISTRY_URL,
        )

    async def deployment_target(self) -> DeploymentTarget:
        """
        Build the SSH target. An inline key wins over a key file; the file is
        read asynchronously so the agent never blocks on disk.
        """
        if not self.SSH_HOST or not self.SSH_USERNAME:
            raise ValueError("ROLLOVER_SSH_HOST and ROLLOVER_SSH_USERNAME are required")

        private_key = self.SSH_PRIVATE_KEY.get_secret_value()
        if not private_key and self.SSH_PRIVATE_KEY_PATH:
            config_logger.info(f"Reading SSH private key from {self.SSH_PRIVATE_KEY_PATH}")
            try:
                async with aiofiles.open(self.SSH_PRIVATE_KEY_PATH, "r") as key_file:
                    private_key = await key_file.read()
            except OSError as e:
                raise ValueError(f"Cannot read SSH private key {self.SSH_PRIVATE_KEY_PATH}: {e}") from e
        if not private_key:
            raise ValueError("ROLLOVER_SSH_PRIVATE_KEY or ROLLOVER_SSH_PRIVATE_KEY_PATH is required")

        return DeploymentTarget(
            host=self.SSH_HOST,
            username=self.SSH_USERNAME,
            private_key=private_key,
            port=self.SSH_PORT,
        )
