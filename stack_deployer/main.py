"""
Main Orchestrator Module

Ties the three stages together: provision one EC2 instance, bootstrap it
over SSH, then apply the web server, database and application roles with
Ansible. Each stage can be invoked on its own; `deploy` chains them and
stops at the first failure.
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from .bootstrap import BootstrapRunner, StepResult
from .cloud import AWSProvider, InstanceInfo, ProvisionResult
from .configs import ConfigLoader, DeploymentConfig
from .configuration import AnsibleProject, AnsibleRunner, InventoryEntry, write_project


class StackDeployer:
    """
    Runs provisioning, bootstrap and configuration for a single host.

    Collaborators are created lazily and may be replaced (tests inject fakes).
    """

    def __init__(self, config: DeploymentConfig):
        self.config = config
        self._provider: Optional[AWSProvider] = None
        self._bootstrap_runner: Optional[BootstrapRunner] = None
        self._ansible_runner: Optional[AnsibleRunner] = None

    @classmethod
    def from_config_file(cls, config_path: str) -> "StackDeployer":
        return cls(ConfigLoader.load_from_file(config_path))

    @property
    def provider(self) -> AWSProvider:
        if self._provider is None:
            self._provider = AWSProvider.from_config(self.config.instance)
        return self._provider

    @property
    def bootstrap_runner(self) -> BootstrapRunner:
        if self._bootstrap_runner is None:
            self._bootstrap_runner = BootstrapRunner(self.config.bootstrap, self.config.ssh)
        return self._bootstrap_runner

    @property
    def ansible_runner(self) -> AnsibleRunner:
        if self._ansible_runner is None:
            self._ansible_runner = AnsibleRunner(self.config.ansible)
        return self._ansible_runner

    # ==================== Stages ====================

    def provision(self) -> ProvisionResult:
        cfg = self.config.instance
        logger.info(
            f"Provisioning {cfg.instance_type} from {cfg.image_id} in {cfg.region}, "
            f"ports={cfg.ingress_ports}"
        )
        return self.provider.provision(cfg)

    def status(self, instance_id: str) -> InstanceInfo:
        return self.provider.describe_instance(instance_id)

    def bootstrap(self, host: str, use_script: bool = False) -> List[StepResult]:
        runner = self.bootstrap_runner
        runner.wait_for_ssh(host)
        if use_script:
            runner.upload_and_run(host)
            return []
        return runner.run(host)

    def inventory_entry(self, host: str) -> InventoryEntry:
        return InventoryEntry(
            alias=self.config.ansible.host_alias,
            address=host,
            user=self.config.ssh.user,
            key_path=self.config.ssh.key_path,
        )

    def scaffold(self, host: str) -> AnsibleProject:
        return write_project(self.config, [self.inventory_entry(host)])

    def configure(self, host: str, check_mode: bool = False) -> AnsibleProject:
        project = self.scaffold(host)
        self.ansible_runner.run(str(project.inventory_path), str(project.playbook_path), check_mode=check_mode)
        return project

    def deploy(self, use_script: bool = False) -> Dict[str, Any]:
        """Provision, bootstrap and configure, in that order"""
        result = self.provision()
        host = result.public_ip
        logger.info(f"Instance {result.instance.instance_id} reachable at {host}")

        self.bootstrap(host, use_script=use_script)
        project = self.configure(host)

        logger.success(f"Deployment finished: http://{host}/")
        return {
            "instance_id": result.instance.instance_id,
            "public_ip": host,
            "security_group_id": result.security_group_id,
            "inventory": str(project.inventory_path),
            "playbook": str(project.playbook_path),
        }
