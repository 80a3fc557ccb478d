import tomllib
from pathlib import Path

import pytest
from pydantic import ValidationError

from stack_deployer.configs import DEFAULT_INGRESS_PORTS, ConfigLoader


def test_load_from_file_missing_raises(tmp_path: Path):
    missing = tmp_path / "missing.toml"
    with pytest.raises(FileNotFoundError):
        ConfigLoader.load_from_file(str(missing))


def test_from_dict_applies_defaults(config_dict):
    cfg = ConfigLoader.from_dict(config_dict)

    assert cfg.instance.region == "us-east-1"
    assert cfg.instance.instance_type == "t2.micro"
    assert cfg.instance.ingress_ports == DEFAULT_INGRESS_PORTS == [22, 80, 3000]
    assert cfg.instance.ingress_cidr == "0.0.0.0/0"
    assert cfg.ssh.user == "ubuntu"
    assert cfg.ansible.host_alias == "webserver"
    assert cfg.ansible.app_port == 3000


def test_missing_image_id_raises(config_dict):
    data = config_dict
    del data["instance"]["image_id"]

    with pytest.raises(ValidationError):
        ConfigLoader.from_dict(data)


@pytest.mark.parametrize("ports", [[], [22, 70000], [22, 80, 22]])
def test_invalid_ingress_ports_raise(ports, config_dict):
    data = config_dict
    data["instance"]["ingress_ports"] = ports

    with pytest.raises(ValidationError):
        ConfigLoader.from_dict(data)


def test_two_port_variant_is_accepted(config_dict):
    data = config_dict
    data["instance"]["ingress_ports"] = [22, 80]

    cfg = ConfigLoader.from_dict(data)
    assert cfg.instance.ingress_ports == [22, 80]


def test_key_path_is_user_expanded(config_dict):
    data = config_dict
    data["ssh"]["key_path"] = "~/.ssh/key.pem"

    cfg = ConfigLoader.from_dict(data)
    assert cfg.ssh.key_path is not None
    assert not cfg.ssh.key_path.startswith("~")


def test_project_dir_derived_from_repo_url(config_dict):
    cfg = ConfigLoader.from_dict(config_dict)
    assert cfg.bootstrap.resolved_project_dir() == "todo-app"

    cfg.bootstrap.project_dir = "app"
    assert cfg.bootstrap.resolved_project_dir() == "app"


def test_save_to_file_creates_directories_and_reloads(tmp_path: Path, config_dict):
    cfg = ConfigLoader.from_dict(config_dict)

    out_path = tmp_path / "nested" / "deploy.toml"
    ConfigLoader.save_to_file(cfg, str(out_path))

    assert out_path.exists()
    loaded = ConfigLoader.load_from_file(str(out_path))
    assert loaded == cfg


def test_save_to_file_escapes_control_characters(tmp_path: Path, config_dict):
    data = config_dict
    data["instance"]["security_group_description"] = 'line one\nline two\twith "quotes" and \\ slash'
    data["bootstrap"]["commands"] = ["echo one\necho two", "printf '\x1b'"]
    cfg = ConfigLoader.from_dict(data)

    out_path = tmp_path / "deploy.toml"
    ConfigLoader.save_to_file(cfg, str(out_path))

    loaded = ConfigLoader.load_from_file(str(out_path))
    assert loaded.instance.security_group_description == 'line one\nline two\twith "quotes" and \\ slash'
    assert loaded.bootstrap.commands == ["echo one\necho two", "printf '\x1b'"]
    assert loaded == cfg


def test_repo_url_is_required(config_dict):
    data = config_dict
    data["bootstrap"] = {"commands": ["echo ready"]}

    with pytest.raises(ValidationError):
        ConfigLoader.from_dict(data)


def test_default_config_is_valid():
    cfg = ConfigLoader.default_config()

    assert cfg.instance.ingress_ports == [22, 80, 3000]
    assert cfg.bootstrap.repo_url


def test_default_config_survives_save(tmp_path: Path):
    out_path = tmp_path / "deploy.toml"
    ConfigLoader.save_to_file(ConfigLoader.default_config(), str(out_path))

    data = tomllib.loads(out_path.read_text())
    assert data["instance"]["image_id"] == "ami-0c7217cdde317cfec"
    assert "aws_profile" not in data["instance"]
    assert ConfigLoader.load_from_file(str(out_path)) == ConfigLoader.default_config()
