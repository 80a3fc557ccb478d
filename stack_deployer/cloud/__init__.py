from .types import IngressRule, InstanceInfo, InstanceNotRunningError, InstanceState, ProvisionResult
from .aws_provider import AWSProvider, ingress_rules, is_ipv4

__all__ = [
    "AWSProvider",
    "IngressRule",
    "InstanceInfo",
    "InstanceNotRunningError",
    "InstanceState",
    "ProvisionResult",
    "ingress_rules",
    "is_ipv4",
]
