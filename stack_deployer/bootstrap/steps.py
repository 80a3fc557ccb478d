import shlex
from dataclasses import dataclass
from typing import List

from ..configs import BootstrapConfig


NODESOURCE_SETUP_URL = "https://deb.nodesource.com/setup_{version}.x"


@dataclass(frozen=True)
class BootstrapStep:
    name: str
    command: str


def build_steps(cfg: BootstrapConfig) -> List[BootstrapStep]:
    """Ordered command list for a fresh Ubuntu host"""
    if cfg.commands:
        return [BootstrapStep(name=f"step-{i + 1}", command=cmd) for i, cmd in enumerate(cfg.commands)]

    if not cfg.repo_url:
        raise ValueError("bootstrap.repo_url is required unless bootstrap.commands is set")

    project_dir = shlex.quote(cfg.resolved_project_dir())
    setup_url = NODESOURCE_SETUP_URL.format(version=cfg.node_version)

    return [
        BootstrapStep("update-index", "sudo apt-get update -y"),
        BootstrapStep("install-git", "sudo apt-get install -y git"),
        BootstrapStep("clone-repository", f"git clone {shlex.quote(cfg.repo_url)} {project_dir}"),
        BootstrapStep(
            "install-node",
            f"curl -fsSL {setup_url} -o /tmp/nodesource_setup.sh"
            " && sudo -E bash /tmp/nodesource_setup.sh"
            " && sudo apt-get install -y nodejs",
        ),
        BootstrapStep("install-dependencies", f"cd {project_dir} && npm install"),
    ]


def render_script(steps: List[BootstrapStep]) -> str:
    lines = ["#!/usr/bin/env bash", "set -euo pipefail", ""]
    for step in steps:
        lines.append(f"# {step.name}")
        lines.append(step.command)
    return "\n".join(lines) + "\n"
