"""
Cloud record types

The instance record is owned by EC2; these are read-only snapshots of it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class InstanceState(str, Enum):
    """EC2 instance lifecycle states"""
    PENDING = "pending"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting-down"
    TERMINATED = "terminated"
    STOPPING = "stopping"
    STOPPED = "stopped"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, name: str) -> "InstanceState":
        try:
            return cls(name)
        except ValueError:
            return cls.UNKNOWN


@dataclass
class InstanceInfo:
    """Information about a cloud instance"""
    instance_id: str
    state: InstanceState = InstanceState.PENDING
    public_ip: Optional[str] = None
    private_ip: Optional[str] = None
    instance_type: str = ""
    launch_time: Optional[str] = None


@dataclass
class IngressRule:
    """One inbound rule of the security group"""
    port: int
    cidr: str = "0.0.0.0/0"
    protocol: str = "tcp"
    description: str = ""


@dataclass
class ProvisionResult:
    instance: InstanceInfo
    security_group_id: str

    @property
    def public_ip(self) -> str:
        assert self.instance.public_ip is not None
        return self.instance.public_ip


class InstanceNotRunningError(RuntimeError):
    """The wait finished but the instance is not usable"""

    def __init__(self, instance: InstanceInfo, reason: str):
        super().__init__(f"Instance {instance.instance_id} is not ready ({instance.state.value}): {reason}")
        self.instance = instance
