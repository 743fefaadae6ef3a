from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator

from rollover.domain.container import ContainerInstance, PortBinding
from rollover.domain.deployment import CONTAINER_NAME_PATTERN, RolloverSpec
from rollover.domain.image import ImageReference


# ---------------------------
# Rollover request
# ---------------------------
class RolloverRequest(BaseModel):
    container_name: str = Field(..., min_length=1, description="Fixed name of the container to replace")
    image_reference: str = Field(..., min_length=1, description="Registry path and tag, e.g. nginx:1.27")
    network: str = Field(..., min_length=1, description="Existing Docker network to attach to")
    host_port: int = Field(..., ge=1, le=65535)
    container_port: int = Field(..., ge=1, le=65535)
    stop_timeout: int = Field(10, ge=0, description="Seconds before stop turns into kill")

    @field_validator("container_name")
    @classmethod
    def validate_container_name(cls, value: str) -> str:
        if not CONTAINER_NAME_PATTERN.match(value):
            raise ValueError("Container name may only contain [a-zA-Z0-9_.-]")
        return value

    @field_validator("image_reference")
    @classmethod
    def validate_image_reference(cls, value: str) -> str:
        ImageReference.parse(value)
        return value

    def to_spec(self) -> RolloverSpec:
        return RolloverSpec(
            container_name=self.container_name,
            image_reference=self.image_reference,
            network=self.network,
            port_binding=PortBinding(self.host_port, self.container_port),
            stop_timeout=self.stop_timeout,
        )

    model_config = {
        "json_schema_extra": {
            "example": {
                "container_name": "rethink-practice-fe",
                "image_reference": "thiettruong/rethink-practice-fe:latest",
                "network": "app_app-network",
                "host_port": 3000,
                "container_port": 3000,
            }
        }
    }


# ---------------------------
# Container schema
# ---------------------------
class ContainerResponse(BaseModel):
    name: str
    image_reference: str
    network: Optional[str]
    port_binding: Optional[str]
    status: Literal["created", "running", "paused", "restarting", "removing", "exited", "dead"]
    container_id: Optional[str] = None
    image_id: Optional[str] = None
    created_at: datetime

    @classmethod
    def from_instance(cls, instance: ContainerInstance) -> "ContainerResponse":
        return cls(
            name=instance.name,
            image_reference=instance.image_reference,
            network=instance.network,
            port_binding=str(instance.port_binding) if instance.port_binding else None,
            status=instance.status,
            container_id=instance.container_id,
            image_id=instance.image_id,
            created_at=instance.created_at,
        )


class RolloverResponse(BaseModel):
    container: ContainerResponse
    replaced: Optional[ContainerResponse] = None
    steps: list[str]
