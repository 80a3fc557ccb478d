"""
Configuration Loader

Loads the deployment TOML file and writes configs back out, including the
starter config emitted by `init`.
"""

import os
import tomllib
from typing import Any, Dict, List

from dotenv import load_dotenv

from .types import DeploymentConfig


STARTER_CONFIG: Dict[str, Any] = {
    "log_level": "INFO",
    "instance": {
        "region": "us-east-1",
        "image_id": "ami-0c7217cdde317cfec",
        "instance_type": "t2.micro",
        "key_name": "my-key",
        "security_group_name": "stack-deployer-sg",
        "ingress_ports": [22, 80, 3000],
    },
    "ssh": {
        "user": "ubuntu",
        "key_path": "~/.ssh/my-key.pem",
    },
    "bootstrap": {
        "repo_url": "https://github.com/example/app.git",
        "node_version": "18",
    },
    "ansible": {
        "workdir": "ansible",
        "host_alias": "webserver",
        "app_port": 3000,
    },
}

_TOML_ESCAPES = {
    "\\": "\\\\",
    '"': '\\"',
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\f": "\\f",
    "\r": "\\r",
}


def _toml_string(value: str) -> str:
    out = []
    for ch in value:
        if ch in _TOML_ESCAPES:
            out.append(_TOML_ESCAPES[ch])
        elif ord(ch) < 0x20 or ord(ch) == 0x7F:
            out.append(f"\\u{ord(ch):04X}")
        else:
            out.append(ch)
    return '"' + "".join(out) + '"'


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, list):
        return "[" + ", ".join(_toml_value(v) for v in value) + "]"
    return _toml_string(str(value))


def _toml_lines(data: Dict[str, Any]) -> List[str]:
    lines: List[str] = []
    tables = {k: v for k, v in data.items() if isinstance(v, dict)}
    for key, value in data.items():
        if key in tables or value is None:
            continue
        lines.append(f"{key} = {_toml_value(value)}")
    for name, table in tables.items():
        lines.append("")
        lines.append(f"[{name}]")
        for key, value in table.items():
            # TOML has no null
            if value is None:
                continue
            lines.append(f"{key} = {_toml_value(value)}")
    return lines


class ConfigLoader:
    """Loads and validates configuration from files"""

    @staticmethod
    def load_from_file(config_path: str) -> DeploymentConfig:
        """Load deployment configuration from a TOML file"""
        if not os.path.exists(config_path):
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        load_dotenv()

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        return ConfigLoader.from_dict(data)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> DeploymentConfig:
        return DeploymentConfig(**data)

    @staticmethod
    def to_dict(config: DeploymentConfig) -> Dict[str, Any]:
        return config.model_dump()

    @staticmethod
    def save_to_file(config: DeploymentConfig, config_path: str) -> None:
        """Save deployment configuration as TOML"""
        os.makedirs(os.path.dirname(config_path) or ".", exist_ok=True)

        with open(config_path, "w") as f:
            f.write("\n".join(_toml_lines(ConfigLoader.to_dict(config))) + "\n")

    @staticmethod
    def default_config() -> DeploymentConfig:
        return ConfigLoader.from_dict(STARTER_CONFIG)
