from datetime import datetime, timezone
from dataclasses import dataclass, field


@dataclass(frozen=True)
class PortBinding:
    host_port: int
    container_port: int
    protocol: str = "tcp"

    def __post_init__(self):
        for label, port in (("host_port", self.host_port), ("container_port", self.container_port)):
            if isinstance(port, bool) or not isinstance(port, int) or not 1 <= port <= 65535:
                raise ValueError(f"{label} must be an integer between 1 and 65535, got {port!r}")
        if self.protocol not in ("tcp", "udp"):
            raise ValueError(f"Unsupported protocol: {self.protocol}")

    @classmethod
    def parse(cls, text: str) -> "PortBinding":
        """Parse ``host:container`` (or a single port used on both sides)."""
        value, _, protocol = text.strip().partition("/")
        host, sep, container = value.partition(":")
        try:
            host_port = int(host)
            container_port = int(container) if sep else host_port
        except ValueError:
            raise ValueError(f"Invalid port binding: {text!r}")
        return cls(host_port, container_port, protocol or "tcp")

    def as_docker_ports(self) -> dict[str, int]:
        return {f"{self.container_port}/{self.protocol}": self.host_port}

    def __str__(self) -> str:
        suffix = "" if self.protocol == "tcp" else f"/{self.protocol}"
        return f"{self.host_port}:{self.container_port}{suffix}"


@dataclass
class ContainerInstance:
    name: str
    image_reference: str
    network: str | None
    port_binding: PortBinding | None
    status: str = "running"  # created / running / exited
    container_id: str | None = None
    image_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_running(self) -> bool:
        return self.status == "running"
