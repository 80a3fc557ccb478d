# pyright: reportTypedDictNotRequiredAccess=false
"""
AWS Instance Provisioner

Creates the security group, opens the configured ports, launches one EC2
instance and blocks until it is running with a public address.

Nothing here retries or rolls back: every EC2 API rejection propagates as the
botocore exception it was raised as, and resources created before the failure
are left in place.
"""

import ipaddress
from typing import List, Optional

import boto3
from botocore.exceptions import ClientError
from loguru import logger

from mypy_boto3_ec2.client import EC2Client
from mypy_boto3_ec2.type_defs import InstanceTypeDef

from ..configs import InstanceConfig
from .types import IngressRule, InstanceInfo, InstanceNotRunningError, InstanceState, ProvisionResult


def as_instance_info(instance: InstanceTypeDef) -> InstanceInfo:
    instance_id = instance["InstanceId"]
    assert type(instance_id) is str

    launch_time = instance.get("LaunchTime")
    return InstanceInfo(
        instance_id=instance_id,
        state=InstanceState.parse(instance["State"]["Name"]),
        public_ip=instance.get("PublicIpAddress"),
        private_ip=instance.get("PrivateIpAddress"),
        instance_type=instance.get("InstanceType", ""),
        launch_time=launch_time.isoformat() if launch_time else None,
    )


def ingress_rules(cfg: InstanceConfig) -> List[IngressRule]:
    return [IngressRule(port=port, cidr=cfg.ingress_cidr) for port in cfg.ingress_ports]


def is_ipv4(address: Optional[str]) -> bool:
    if not address:
        return False
    try:
        ipaddress.IPv4Address(address)
    except ValueError:
        return False
    return True


class AWSProvider:
    """
    EC2 operations for a single region.

    The client is created lazily from a boto3 session so that credentials are
    resolved by boto3's default chain (environment, shared config, profile).
    """

    def __init__(self, region_id: str, profile_name: Optional[str] = None, client: Optional[EC2Client] = None):
        self.region_id = region_id
        self.profile_name = profile_name
        self._ec2_client = client

    @classmethod
    def from_config(cls, cfg: InstanceConfig) -> "AWSProvider":
        return cls(cfg.region, profile_name=cfg.aws_profile)

    @property
    def ec2_client(self) -> EC2Client:
        if self._ec2_client is None:
            session = boto3.Session(profile_name=self.profile_name, region_name=self.region_id)
            self._ec2_client = session.client("ec2")
        return self._ec2_client

    # ==================== Security Group Operations ====================

    def create_security_group(self, name: str, description: str) -> str:
        """Create a security group; a duplicate name raises InvalidGroup.Duplicate"""
        try:
            rep = self.ec2_client.create_security_group(GroupName=name, Description=description)
        except ClientError as exc:
            logger.error(f"create_security_group failed for {name} in {self.region_id}: {exc}")
            raise

        security_group_id = rep["GroupId"]
        assert type(security_group_id) is str

        logger.success(f"Created security group {name} ({security_group_id}) in {self.region_id}")
        return security_group_id

    def authorize_ingress(self, security_group_id: str, rules: List[IngressRule]) -> None:
        """Authorize each rule with its own API call"""
        for rule in rules:
            try:
                self.ec2_client.authorize_security_group_ingress(
                    GroupId=security_group_id,
                    IpPermissions=[{
                        "IpProtocol": rule.protocol,
                        "FromPort": rule.port,
                        "ToPort": rule.port,
                        "IpRanges": [{"CidrIp": rule.cidr, "Description": rule.description}],
                    }],
                )
            except ClientError as exc:
                logger.error(f"authorize_security_group_ingress failed for {security_group_id} port {rule.port}: {exc}")
                raise
            logger.info(f"Opened {rule.protocol}/{rule.port} from {rule.cidr} on {security_group_id}")

    # ==================== Instance Operations ====================

    def run_instance(
        self,
        image_id: str,
        instance_type: str,
        key_name: str,
        security_group_id: str,
        name: str,
    ) -> InstanceInfo:
        """Launch exactly one instance"""
        try:
            response = self.ec2_client.run_instances(
                ImageId=image_id,
                InstanceType=instance_type,  # pyright: ignore[reportArgumentType]
                KeyName=key_name,
                MinCount=1,
                MaxCount=1,
                SecurityGroupIds=[security_group_id],
                TagSpecifications=[{
                    "ResourceType": "instance",
                    "Tags": [{"Key": "Name", "Value": name}],
                }],
            )
        except ClientError as exc:
            logger.error(f"run_instances failed in {self.region_id}: image={image_id}, instance_type={instance_type}: {exc}")
            logger.warning(f"Security group {security_group_id} was created and is left in place")
            raise

        instances = response["Instances"]
        assert len(instances) == 1, f"Expected one instance, got {len(instances)}"

        info = as_instance_info(instances[0])
        logger.success(f"Launched instance {info.instance_id} ({instance_type}) in {self.region_id}")
        return info

    def describe_instance(self, instance_id: str) -> InstanceInfo:
        response = self.ec2_client.describe_instances(InstanceIds=[instance_id])

        for reservation in response["Reservations"]:
            for instance in reservation["Instances"]:
                if instance["InstanceId"] == instance_id:
                    return as_instance_info(instance)

        raise RuntimeError(f"Instance {instance_id} not found in {self.region_id}")

    def wait_until_running(self, instance_id: str, delay: int = 15, max_attempts: int = 40) -> InstanceInfo:
        """
        Block until the instance is running with a public IPv4 address.

        Uses the EC2 `instance_running` waiter, which gives up after
        `max_attempts` polls and fails immediately if the instance enters a
        terminal state (both raise botocore's WaiterError). The instance is
        described again afterwards and only a running instance with a public
        address is returned.
        """
        logger.info(f"Waiting for {instance_id} to reach running (every {delay}s, at most {max_attempts} polls)")

        waiter = self.ec2_client.get_waiter("instance_running")
        waiter.wait(
            InstanceIds=[instance_id],
            WaiterConfig={"Delay": delay, "MaxAttempts": max_attempts},
        )

        info = self.describe_instance(instance_id)
        if info.state != InstanceState.RUNNING:
            raise InstanceNotRunningError(info, "state is not running")
        if not is_ipv4(info.public_ip):
            raise InstanceNotRunningError(info, f"no public IPv4 address (got {info.public_ip!r})")

        logger.success(f"Instance {instance_id} is running at {info.public_ip}")
        return info

    # ==================== Full sequence ====================

    def provision(self, cfg: InstanceConfig) -> ProvisionResult:
        """Security group, ingress rules, one instance, wait for running"""
        security_group_id = self.create_security_group(cfg.security_group_name, cfg.security_group_description)
        self.authorize_ingress(security_group_id, ingress_rules(cfg))

        launched = self.run_instance(
            image_id=cfg.image_id,
            instance_type=cfg.instance_type,
            key_name=cfg.key_name,
            security_group_id=security_group_id,
            name=cfg.instance_name,
        )
        running = self.wait_until_running(launched.instance_id, cfg.wait_delay, cfg.wait_max_attempts)

        return ProvisionResult(instance=running, security_group_id=security_group_id)
