import shlex
from dataclasses import dataclass
from typing import Iterable, List, Optional


SSH_COMMON_ARGS = "-o StrictHostKeyChecking=no -o UserKnownHostsFile=/dev/null"


@dataclass
class InventoryEntry:
    """One host line of an INI inventory"""
    alias: str
    address: str
    user: str = "ubuntu"
    key_path: Optional[str] = None

    def to_line(self) -> str:
        parts = [
            self.alias,
            f"ansible_host={shlex.quote(self.address)}",
            f"ansible_user={shlex.quote(self.user)}",
        ]
        if self.key_path:
            parts.append(f"ansible_ssh_private_key_file={shlex.quote(self.key_path)}")
        return " ".join(parts)

    @classmethod
    def parse(cls, line: str) -> "InventoryEntry":
        tokens = shlex.split(line)
        if not tokens:
            raise ValueError("empty inventory line")

        alias, pairs = tokens[0], {}
        for token in tokens[1:]:
            if "=" not in token:
                raise ValueError(f"expected key=value, got {token!r} in {line!r}")
            key, value = token.split("=", 1)
            pairs[key] = value

        if "ansible_host" not in pairs:
            raise ValueError(f"missing ansible_host in {line!r}")

        return cls(
            alias=alias,
            address=pairs["ansible_host"],
            user=pairs.get("ansible_user", "ubuntu"),
            key_path=pairs.get("ansible_ssh_private_key_file"),
        )


def render_inventory(entries: Iterable[InventoryEntry], group: str) -> str:
    lines = [f"[{group}]"]
    lines.extend(entry.to_line() for entry in entries)
    lines.append("")
    lines.append(f"[{group}:vars]")
    lines.append(f"ansible_ssh_common_args='{SSH_COMMON_ARGS}'")
    return "\n".join(lines) + "\n"


def parse_inventory(text: str) -> List[InventoryEntry]:
    """Host lines of every plain group; `:vars` sections and comments are skipped"""
    entries: List[InventoryEntry] = []
    in_vars = False
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith(("#", ";")):
            continue
        if line.startswith("["):
            in_vars = line.endswith(":vars]")
            continue
        if not in_vars:
            entries.append(InventoryEntry.parse(line))
    return entries
