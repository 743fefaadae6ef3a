import re
from dataclasses import dataclass, field

from rollover.domain.container import ContainerInstance, PortBinding
from rollover.domain.image import ImageReference

# Same rule the Docker daemon applies to container names.
CONTAINER_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$")


@dataclass(frozen=True)
class RolloverSpec:
    container_name: str
    image_reference: str
    network: str
    port_binding: PortBinding
    stop_timeout: int = 10

    def __post_init__(self):
        if not self.container_name:
            raise ValueError("container_name must not be empty")
        if not CONTAINER_NAME_PATTERN.match(self.container_name):
            raise ValueError(f"Invalid container name: {self.container_name!r}")
        if not self.network:
            raise ValueError("network must not be empty")
        ImageReference.parse(self.image_reference)
        if not isinstance(self.port_binding, PortBinding):
            raise ValueError("port_binding must be a PortBinding")
        if self.stop_timeout < 0:
            raise ValueError("stop_timeout must not be negative")


@dataclass
class RolloverResult:
    container: ContainerInstance
    replaced: ContainerInstance | None = None
    steps: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class DeploymentTarget:
    host: str
    username: str
    private_key: str = field(repr=False)
    port: int = 22


@dataclass(frozen=True)
class CommandResult:
    exit_status: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_status == 0


@dataclass(frozen=True)
class TriggerEvent:
    """The CI event that may start a deploy: only pushes to the primary branch
    whose build stage succeeded are deployable."""

    event_name: str
    ref: str
    build_succeeded: bool
    primary_branch: str = "main"

    @property
    def is_deployable(self) -> bool:
        return (
            self.event_name == "push"
            and self.ref == f"refs/heads/{self.primary_branch}"
            and self.build_succeeded
        )


@dataclass
class PipelineResult:
    deployed: bool
    steps: list[str] = field(default_factory=list)
    remote: CommandResult | None = None
