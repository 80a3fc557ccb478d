from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import asyncssh
import pytest
from botocore.exceptions import ClientError, WaiterError

from stack_deployer.configs import ConfigLoader


def minimal_config_dict(tmp_path=None) -> Dict[str, Any]:
    data: Dict[str, Any] = {
        "instance": {
            "region": "us-east-1",
            "image_id": "ami-0c7217cdde317cfec",
            "instance_type": "t2.micro",
            "key_name": "unit-test-key",
            "wait_delay": 1,
            "wait_max_attempts": 3,
        },
        "ssh": {
            "user": "ubuntu",
            "key_path": "/tmp/unit-test-key.pem",
            "ready_timeout": 1,
        },
        "bootstrap": {
            "repo_url": "https://github.com/example/todo-app.git",
            "node_version": "18",
        },
    }
    if tmp_path is not None:
        data["ansible"] = {"workdir": str(tmp_path / "ansible")}
    return data


@pytest.fixture
def config_dict():
    return minimal_config_dict()


@pytest.fixture
def deployment_config(tmp_path):
    return ConfigLoader.from_dict(minimal_config_dict(tmp_path))


# ==================== EC2 ====================


class _FakeWaiter:
    def __init__(self, client: "FakeEC2Client"):
        self._client = client

    def wait(self, InstanceIds, WaiterConfig):
        self._client.calls.append(("wait", {"InstanceIds": InstanceIds, "WaiterConfig": WaiterConfig}))
        if self._client.waiter_failure:
            raise WaiterError(
                name="InstanceRunning",
                reason=self._client.waiter_failure,
                last_response={},
            )
        self._client.state = self._client.state_after_wait


class FakeEC2Client:
    """Records calls; only the EC2 operations used by AWSProvider are implemented"""

    def __init__(
        self,
        state_after_wait: str = "running",
        public_ip: Optional[str] = "54.210.167.204",
        existing_groups: Tuple[str, ...] = (),
        waiter_failure: Optional[str] = None,
        run_error_code: Optional[str] = None,
    ):
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.groups = set(existing_groups)
        self.state = "pending"
        self.state_after_wait = state_after_wait
        self.public_ip = public_ip
        self.waiter_failure = waiter_failure
        self.run_error_code = run_error_code

    def calls_named(self, name: str) -> List[Dict[str, Any]]:
        return [kwargs for call, kwargs in self.calls if call == name]

    def create_security_group(self, **kwargs):
        self.calls.append(("create_security_group", kwargs))
        name = kwargs["GroupName"]
        if name in self.groups:
            raise ClientError(
                {"Error": {"Code": "InvalidGroup.Duplicate", "Message": f"The security group '{name}' already exists"}},
                "CreateSecurityGroup",
            )
        self.groups.add(name)
        return {"GroupId": "sg-0123456789abcdef0"}

    def authorize_security_group_ingress(self, **kwargs):
        self.calls.append(("authorize_security_group_ingress", kwargs))
        return {"Return": True}

    def run_instances(self, **kwargs):
        self.calls.append(("run_instances", kwargs))
        if self.run_error_code:
            raise ClientError(
                {"Error": {"Code": self.run_error_code, "Message": "rejected"}},
                "RunInstances",
            )
        return {"Instances": [self._instance()]}

    def get_waiter(self, name: str):
        assert name == "instance_running"
        return _FakeWaiter(self)

    def describe_instances(self, **kwargs):
        self.calls.append(("describe_instances", kwargs))
        return {"Reservations": [{"Instances": [self._instance()]}]}

    def _instance(self) -> Dict[str, Any]:
        instance: Dict[str, Any] = {
            "InstanceId": "i-0abc1234def567890",
            "InstanceType": "t2.micro",
            "State": {"Name": self.state},
            "PrivateIpAddress": "172.31.5.10",
            "LaunchTime": datetime(2026, 1, 1, 12, 0, 0),
        }
        if self.state == "running" and self.public_ip:
            instance["PublicIpAddress"] = self.public_ip
        return instance


@pytest.fixture
def fake_ec2():
    return FakeEC2Client()


@pytest.fixture
def make_fake_ec2():
    return FakeEC2Client


# ==================== SSH ====================


@dataclass
class _RunResult:
    exit_status: Optional[int]
    stdout: Any = ""
    stderr: Any = ""


class _FakeSFTP:
    def __init__(self, uploads: Dict[str, str]):
        self._uploads = uploads

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def put(self, local_path: str, remote_path: str) -> None:
        with open(local_path) as f:
            self._uploads[remote_path] = f.read()


class FakeConn:
    def __init__(self, results: Dict[str, _RunResult], ran: List[str], uploads: Dict[str, str]):
        self._results = results
        self.ran = ran
        self._uploads = uploads

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def run(self, command: str, check: bool = False):
        self.ran.append(command)
        return self._results.get(command, _RunResult(exit_status=0, stdout="ok\n", stderr=""))

    def start_sftp_client(self):
        return _FakeSFTP(self._uploads)

    def close(self):
        pass

    async def wait_closed(self):
        pass


@pytest.fixture
def fake_asyncssh(monkeypatch):
    """Replace asyncssh.connect; `results` maps command -> _RunResult"""
    state: Dict[str, Any] = {
        "results": {},
        "ran": [],
        "uploads": {},
        "connects": [],
        "refuse": 0,
    }

    async def fake_connect(host: str, **kwargs):
        state["connects"].append((host, kwargs))
        if state["refuse"]:
            state["refuse"] -= 1
            raise ConnectionRefusedError(111, "Connection refused")
        return FakeConn(state["results"], state["ran"], state["uploads"])

    monkeypatch.setattr(asyncssh, "connect", fake_connect)
    state["result"] = _RunResult
    return state
