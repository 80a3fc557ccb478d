from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List

import yaml
from loguru import logger

from ..configs import DeploymentConfig
from .inventory import InventoryEntry, render_inventory
from .playbook import build_playbook, build_roles


INVENTORY_FILE = "inventory.ini"
PLAYBOOK_FILE = "site.yml"


@dataclass
class AnsibleProject:
    root: Path
    inventory_path: Path
    playbook_path: Path
    written: List[Path]


def _dump(path: Path, document) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        f.write("---\n")
        yaml.safe_dump(document, f, sort_keys=False, default_flow_style=False)


def write_project(cfg: DeploymentConfig, entries: Iterable[InventoryEntry]) -> AnsibleProject:
    """Write inventory, root playbook and role files under the workdir, overwriting existing ones"""
    root = Path(cfg.ansible.workdir)
    root.mkdir(parents=True, exist_ok=True)
    written: List[Path] = []

    inventory_path = root / INVENTORY_FILE
    inventory_path.write_text(render_inventory(entries, cfg.ansible.group))
    written.append(inventory_path)

    playbook_path = root / PLAYBOOK_FILE
    _dump(playbook_path, build_playbook(cfg))
    written.append(playbook_path)

    for role, sections in build_roles(cfg).items():
        for section, document in sections.items():
            path = root / "roles" / role / section / "main.yml"
            _dump(path, document)
            written.append(path)

    logger.info(f"Wrote {len(written)} Ansible files under {root}")
    return AnsibleProject(root=root, inventory_path=inventory_path, playbook_path=playbook_path, written=written)
