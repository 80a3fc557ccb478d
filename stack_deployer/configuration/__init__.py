from .inventory import InventoryEntry, parse_inventory, render_inventory
from .playbook import ROLE_ORDER, build_playbook, build_roles
from .project import AnsibleProject, write_project
from .runner import AnsibleRunner

__all__ = [
    "ROLE_ORDER",
    "AnsibleProject",
    "AnsibleRunner",
    "InventoryEntry",
    "build_playbook",
    "build_roles",
    "parse_inventory",
    "render_inventory",
    "write_project",
]
