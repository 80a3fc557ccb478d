"""
Bootstrap Script Runner

Runs the bootstrap steps on a freshly provisioned host. The first step that
exits non-zero aborts the sequence; nothing is retried and no step is guarded
against re-running (a second clone into the same directory fails).
"""

import os
import shlex
import tempfile
from dataclasses import dataclass
from typing import List, Optional

from loguru import logger

from ..configs import BootstrapConfig, SshConfig
from ..utils.remote import CommandResult, RemoteExecutor
from .steps import BootstrapStep, build_steps, render_script


@dataclass
class StepResult:
    step: BootstrapStep
    result: CommandResult

    @property
    def success(self) -> bool:
        return self.result.success


class BootstrapError(RuntimeError):
    """A bootstrap step exited non-zero"""

    def __init__(self, host: str, step: BootstrapStep, result: CommandResult):
        super().__init__(
            f"Bootstrap step '{step.name}' failed on {host} with exit status {result.return_code}: "
            f"{result.stderr.strip() or result.stdout.strip()}"
        )
        self.host = host
        self.step = step
        self.result = result


class BootstrapRunner:
    def __init__(self, cfg: BootstrapConfig, ssh: SshConfig, executor: Optional[RemoteExecutor] = None):
        self.cfg = cfg
        self.steps = build_steps(cfg)
        self.executor = executor or RemoteExecutor(
            ssh_key_path=ssh.key_path,
            ssh_user=ssh.user,
            connect_timeout=ssh.connect_timeout,
            command_timeout=ssh.command_timeout,
        )
        self.ready_timeout = ssh.ready_timeout

    def wait_for_ssh(self, host: str) -> None:
        logger.info(f"Waiting for SSH on {host}")
        self.executor.wait_ready(host, timeout=self.ready_timeout)
        logger.success(f"SSH is ready on {host}")

    def run(self, host: str) -> List[StepResult]:
        """Run each step in order, raising BootstrapError at the first failure"""
        logger.info(f"Bootstrapping {host}: {[step.name for step in self.steps]}")

        results = self.executor.run_sequence(host, [step.command for step in self.steps])

        step_results: List[StepResult] = []
        for step, result in zip(self.steps, results):
            step_results.append(StepResult(step=step, result=result))
            if not result.success:
                logger.error(f"{host} step '{step.name}' exited {result.return_code}")
                raise BootstrapError(host, step, result)
            logger.info(f"{host} step '{step.name}' done")

        logger.success(f"Bootstrap finished on {host}")
        return step_results

    def upload_and_run(self, host: str) -> CommandResult:
        """Copy the rendered script to the host and execute it in one shot"""
        script = render_script(self.steps)
        remote_path = self.cfg.script_path

        with tempfile.NamedTemporaryFile("w", suffix=".sh", delete=False) as f:
            f.write(script)
            local_path = f.name
        try:
            self.executor.copy_file(host, local_path, remote_path)
        finally:
            os.remove(local_path)
        logger.info(f"Uploaded bootstrap script to {host}:{remote_path}")

        quoted = shlex.quote(remote_path)
        script_step = BootstrapStep("bootstrap-script", f"chmod +x {quoted} && bash {quoted}")

        result = self.executor.execute_on_host(host, script_step.command)
        if not result.success:
            logger.error(f"{host} bootstrap script exited {result.return_code}")
            raise BootstrapError(host, script_step, result)

        logger.success(f"Bootstrap script finished on {host}")
        return result
