"""
Stack Deployer

Provisions a single AWS EC2 instance and installs NGINX, Node.js and MongoDB
on it.

Stages:
- Instance provisioning (boto3): security group, ingress rules, one instance
- Bootstrap (asyncssh): fixed command sequence on the new host, fail fast
- Configuration (Ansible): inventory, root playbook and three roles

Usage:
    from stack_deployer import StackDeployer

    deployer = StackDeployer.from_config_file("deploy.toml")
    deployer.deploy()

CLI:
    stack-deployer -c deploy.toml provision
    stack-deployer -c deploy.toml bootstrap <ip>
    stack-deployer -c deploy.toml configure <ip>
"""

__version__ = "0.1.0"

from .configs import (
    AnsibleConfig,
    BootstrapConfig,
    ConfigLoader,
    DeploymentConfig,
    InstanceConfig,
    SshConfig,
)
from .cloud import AWSProvider, InstanceInfo, InstanceNotRunningError, InstanceState, ProvisionResult
from .bootstrap import BootstrapError, BootstrapRunner
from .configuration import ROLE_ORDER, AnsibleRunner, InventoryEntry, write_project
from .main import StackDeployer

__all__ = [
    "__version__",
    # Config
    "AnsibleConfig",
    "BootstrapConfig",
    "ConfigLoader",
    "DeploymentConfig",
    "InstanceConfig",
    "SshConfig",
    # Cloud
    "AWSProvider",
    "InstanceInfo",
    "InstanceNotRunningError",
    "InstanceState",
    "ProvisionResult",
    # Bootstrap
    "BootstrapError",
    "BootstrapRunner",
    # Configuration
    "ROLE_ORDER",
    "AnsibleRunner",
    "InventoryEntry",
    "write_project",
    # Main
    "StackDeployer",
]
