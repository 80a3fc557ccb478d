"""Ansible playbook execution."""

import os
import subprocess
import time
from typing import List, Optional

from loguru import logger

from ..configs import AnsibleConfig


MAX_LOG_LENGTH = 1000


class AnsibleRunner:
    """
    Runs `ansible-playbook` against a written project.

    A non-zero exit raises `subprocess.CalledProcessError` with the engine's
    captured stdout/stderr; there is no retry.
    """

    def __init__(self, cfg: AnsibleConfig, timeout: Optional[int] = None):
        self.cfg = cfg
        self.timeout = timeout

    def build_command(self, inventory_path: str, playbook_path: str, check_mode: bool = False) -> List[str]:
        cmd = [self.cfg.playbook_binary, "-i", inventory_path, playbook_path]
        if check_mode:
            cmd.append("--check")
        cmd.extend(self.cfg.extra_args)
        return cmd

    def run(self, inventory_path: str, playbook_path: str, check_mode: bool = False) -> subprocess.CompletedProcess:
        cmd = self.build_command(inventory_path, playbook_path, check_mode)
        logger.info(f"Running {' '.join(cmd)}")

        env = dict(os.environ)
        env.setdefault("ANSIBLE_HOST_KEY_CHECKING", "False")

        start = time.time()
        try:
            process = subprocess.run(cmd, capture_output=True, text=True, check=True, env=env, timeout=self.timeout)
        except subprocess.CalledProcessError as exc:
            stdout_tail = (exc.stdout or "")[-MAX_LOG_LENGTH:]
            logger.error(f"ansible-playbook exited {exc.returncode}\nSTDERR: {exc.stderr}\nSTDOUT TAIL:\n{stdout_tail}")
            raise

        if process.stderr:
            logger.warning(f"ansible-playbook stderr: {process.stderr[:MAX_LOG_LENGTH]}")
        logger.debug(process.stdout[-MAX_LOG_LENGTH:])
        logger.success(f"ansible-playbook finished in {time.time() - start:.1f}s")
        return process
