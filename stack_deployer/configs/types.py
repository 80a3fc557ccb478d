"""
Configuration Type Definitions

One TOML file drives all three stages. Each stage reads only its own section.
"""

import os
import posixpath
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


DEFAULT_INGRESS_PORTS = [22, 80, 3000]


class InstanceConfig(BaseModel):
    """Parameters of the single EC2 instance and its security group"""
    region: str = "us-east-1"
    image_id: str
    instance_type: str = "t2.micro"
    key_name: str
    security_group_name: str = "stack-deployer-sg"
    security_group_description: str = "SSH, HTTP and application access"
    # Administrative, web and application ports
    ingress_ports: List[int] = Field(default_factory=lambda: list(DEFAULT_INGRESS_PORTS))
    ingress_cidr: str = "0.0.0.0/0"
    instance_name: str = "stack-deployer"
    # Named profile from ~/.aws/config, None means the default chain
    aws_profile: Optional[str] = None
    # The running-state wait is bounded by wait_delay * wait_max_attempts
    wait_delay: int = Field(default=15, ge=1)
    wait_max_attempts: int = Field(default=40, ge=1)

    @field_validator("ingress_ports")
    @classmethod
    def _check_ports(cls, ports: List[int]) -> List[int]:
        if not ports:
            raise ValueError("ingress_ports must not be empty")
        for port in ports:
            if not 1 <= port <= 65535:
                raise ValueError(f"invalid port: {port}")
        if len(set(ports)) != len(ports):
            raise ValueError(f"duplicate ports in {ports}")
        return ports


class SshConfig(BaseModel):
    user: str = "ubuntu"
    key_path: Optional[str] = None
    connect_timeout: int = 30
    command_timeout: int = 900
    # How long to wait for sshd after the instance reports running
    ready_timeout: int = 300

    @field_validator("key_path")
    @classmethod
    def _expand_key_path(cls, value: Optional[str]) -> Optional[str]:
        if not value:
            return None
        return os.path.expanduser(value)


class BootstrapConfig(BaseModel):
    repo_url: str = ""
    # Clone target, derived from repo_url when empty
    project_dir: str = ""
    node_version: str = "18"
    # Explicit command list; replaces the generated steps when set
    commands: List[str] = Field(default_factory=list)
    # Relative to the login user's home directory (SFTP does not expand ~)
    script_path: str = "bootstrap.sh"

    def resolved_project_dir(self) -> str:
        if self.project_dir:
            return self.project_dir
        name = self.repo_url.rstrip("/").rsplit("/", 1)[-1]
        if name.endswith(".git"):
            name = name[:-4]
        if not name:
            raise ValueError("bootstrap.repo_url is required to derive project_dir")
        return name

    def remote_project_dir(self, user: str) -> str:
        """Where the clone lives on the host: absolute as given, otherwise under the user's home"""
        project_dir = self.resolved_project_dir()
        if posixpath.isabs(project_dir):
            return project_dir
        return f"~{user}/{project_dir}"


class AnsibleConfig(BaseModel):
    workdir: str = "ansible"
    host_alias: str = "webserver"
    group: str = "web"
    app_port: int = Field(default=3000, ge=1, le=65535)
    server_name: str = "_"
    mongodb_version: str = "6.0"
    app_start_command: str = "npm start"
    playbook_binary: str = "ansible-playbook"
    extra_args: List[str] = Field(default_factory=list)


class DeploymentConfig(BaseModel):
    """Main deployment configuration"""
    instance: InstanceConfig
    ssh: SshConfig = Field(default_factory=SshConfig)
    bootstrap: BootstrapConfig = Field(default_factory=BootstrapConfig)
    ansible: AnsibleConfig = Field(default_factory=AnsibleConfig)
    log_level: str = "INFO"

    @model_validator(mode="after")
    def _require_repo_url(self) -> "DeploymentConfig":
        # The application role checks the repository out even when bootstrap.commands is set
        if not self.bootstrap.repo_url:
            raise ValueError("bootstrap.repo_url is required")
        return self
