"""
Configuration Module

Provides configuration types and loading utilities.
"""

from .types import (
    DEFAULT_INGRESS_PORTS,
    InstanceConfig,
    SshConfig,
    BootstrapConfig,
    AnsibleConfig,
    DeploymentConfig,
)

from .loader import ConfigLoader

__all__ = [
    "DEFAULT_INGRESS_PORTS",
    "InstanceConfig",
    "SshConfig",
    "BootstrapConfig",
    "AnsibleConfig",
    "DeploymentConfig",
    "ConfigLoader",
]
