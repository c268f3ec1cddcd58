"""Instance data model."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Dict, Any


class InstanceStatus(Enum):
    """Provider-neutral instance lifecycle states."""

    PROVISIONING = "PROVISIONING"
    STAGING = "STAGING"
    RUNNING = "RUNNING"
    STOPPING = "STOPPING"
    STOPPED = "STOPPED"
    SUSPENDED = "SUSPENDED"
    TERMINATED = "TERMINATED"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str) -> "InstanceStatus":
        """Parse a state name, case-insensitively."""
        try:
            return cls(value.upper())
        except ValueError:
            return cls.UNKNOWN


# States from which an instance can no longer reach the keyed target state
# without an external start request.
UNREACHABLE_FROM: Dict[InstanceStatus, frozenset] = {
    InstanceStatus.RUNNING: frozenset(
        {InstanceStatus.STOPPED, InstanceStatus.SUSPENDED, InstanceStatus.TERMINATED}
    ),
    InstanceStatus.STOPPED: frozenset({InstanceStatus.TERMINATED}),
}


@dataclass
class InstanceNetworking:
    """Instance networking information."""

    private_ip: Optional[str] = None
    public_ip: Optional[str] = None
    vpc_id: Optional[str] = None
    subnet_id: Optional[str] = None


@dataclass
class Instance:
    """An instance as seen by a cloud driver."""

    name: str
    zone: str
    instance_id: Optional[str] = None
    status: InstanceStatus = InstanceStatus.UNKNOWN
    networking: InstanceNetworking = field(default_factory=InstanceNetworking)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            raise ValueError("name cannot be empty")

    @property
    def display_name(self) -> str:
        """Get display name for the instance."""
        if self.instance_id:
            return f"{self.name} ({self.instance_id})"
        return self.name

    def can_reach(self, target: InstanceStatus) -> bool:
        """Check whether the instance may still reach ``target`` on its own."""
        return self.status not in UNREACHABLE_FROM.get(target, frozenset())

