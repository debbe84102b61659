"""Container state models."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass
class ContainerInfo:
    """Snapshot of a container's state. Never cached."""

    name: str
    status: str
    image: str
    created: str
    ports: Dict[str, Optional[List[dict]]] = field(default_factory=dict)

    @property
    def running(self) -> bool:
        return self.status == "running"

    @classmethod
    def from_container(cls, container) -> "ContainerInfo":
        """Create from a docker SDK container object."""
        attrs = container.attrs or {}
        image = attrs.get("Config", {}).get("Image", "")
        return cls(
            name=container.name,
            status=container.status,
            image=image,
            created=attrs.get("Created", ""),
            ports=container.ports or {},
        )

    def format_ports(self) -> str:
        """Format published ports as HOST:CONTAINER pairs."""
        published = []
        for container_port, bindings in sorted(self.ports.items()):
            for binding in bindings or []:
                host = binding.get("HostPort", "")
                published.append(f"{host}:{container_port}")
        return ", ".join(published)
