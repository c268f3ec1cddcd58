"""AWS EC2 driver for instance address and readiness operations."""

import asyncio
from typing import List, Dict, Any, Optional

from botocore.exceptions import ClientError

from core.exceptions import (
    AddressNotAssignedError,
    DriverError,
    InstanceNotFoundError,
    InstanceStateError,
)
from core.interfaces.driver_interface import IDriver
from core.models.config import AWSConfig, RunMode
from core.models.instance import Instance, InstanceNetworking, InstanceStatus
from core.utils.logger import get_infrastructure_logger
from .session_manager import AWSSessionManager


# shutting-down on EC2 always ends in termination
_STATE_MAPPING = {
    "pending": InstanceStatus.PROVISIONING,
    "running": InstanceStatus.RUNNING,
    "shutting-down": InstanceStatus.TERMINATED,
    "terminated": InstanceStatus.TERMINATED,
    "stopping": InstanceStatus.STOPPING,
    "stopped": InstanceStatus.STOPPED,
}


class EC2Driver(IDriver):
    """EC2 implementation of the cloud driver.

    Instances are addressed by their ``Name`` tag inside an availability
    zone. Blocking boto3 calls run in a worker thread so a readiness wait
    never stalls the event loop.
    """

    def __init__(
        self,
        region: str,
        account_id: Optional[str] = None,
        role_name: Optional[str] = None,
        run_mode: RunMode = RunMode.LOCAL,
        poll_interval: float = 5.0,
        client: Optional[Any] = None,
    ):
        self.region = region
        self.account_id = account_id
        self.role_name = role_name
        self.run_mode = run_mode
        self.poll_interval = poll_interval
        self.logger = get_infrastructure_logger("aws.ec2_driver")
        self._client = client
        self._session_manager = AWSSessionManager(region=region)

    @classmethod
    def from_config(cls, aws_config: AWSConfig) -> "EC2Driver":
        return cls(
            region=aws_config.region,
            account_id=aws_config.account_id,
            role_name=aws_config.role_name,
            run_mode=aws_config.run_mode,
            poll_interval=aws_config.poll_interval,
        )

    def _ensure_client(self) -> None:
        """Ensure the EC2 client is initialized (lazy initialization)."""
        if self._client is None:
            session = self._session_manager.get_session(
                self.account_id, self.role_name, run_mode=self.run_mode
            )
            self._client = session.client("ec2", region_name=self.region)

    def _handle_error(self, operation: str, error: Exception) -> None:
        """Log an AWS failure and re-raise it as a DriverError."""
        if isinstance(error, DriverError):
            raise error
        if isinstance(error, ClientError):
            error_code = error.response["Error"]["Code"]
            self.logger.error(f"{operation} failed: {error_code}")
        else:
            self.logger.error(f"{operation} failed: {str(error)}")
        raise DriverError(f"{operation} failed: {str(error)}") from error

    async def get_nat_ip(self, zone: str, instance_name: str) -> str:
        """Get the public address of an instance."""
        instance = await self.describe_instance(zone, instance_name)
        if not instance.networking.public_ip:
            raise AddressNotAssignedError(instance_name, "public")
        return instance.networking.public_ip

    async def get_internal_ip(self, zone: str, instance_name: str) -> str:
        """Get the private address of an instance."""
        instance = await self.describe_instance(zone, instance_name)
        if not instance.networking.private_ip:
            raise AddressNotAssignedError(instance_name, "private")
        return instance.networking.private_ip

    async def wait_for_instance_state(
        self, state: str, zone: str, instance_name: str
    ) -> None:
        """Poll until the instance reaches ``state``.

        There is no deadline here; the caller bounds the wait and cancels the
        task when it gives up.
        """
        target = InstanceStatus.parse(state)
        if target == InstanceStatus.UNKNOWN:
            raise DriverError(f"Unsupported target state: {state}", instance_name)

        while True:
            instance = await self.describe_instance(zone, instance_name)

            if instance.status == target:
                self.logger.info(f"Instance {instance.display_name} is {target.value}")
                return

            if not instance.can_reach(target):
                raise InstanceStateError(instance_name, instance.status.value, target.value)

            self.logger.debug(
                f"Instance {instance.display_name} is {instance.status.value}, "
                f"waiting for {target.value}"
            )
            await asyncio.sleep(self.poll_interval)

    async def describe_instance(self, zone: str, instance_name: str) -> Instance:
        """Find the instance tagged ``instance_name`` in ``zone``.

        When several instances share the name, live ones win over terminated
        ones and the most recently launched wins among equals.
        """
        filters = [
            {"Name": "tag:Name", "Values": [instance_name]},
            {"Name": "availability-zone", "Values": [zone]},
        ]
        raw_instances = await self._describe_instances(filters)

        candidates = [
            self._parse_instance(raw, zone, instance_name) for raw in raw_instances
        ]
        if not candidates:
            raise InstanceNotFoundError(zone, instance_name)

        candidates.sort(
            key=lambda i: (
                i.status != InstanceStatus.TERMINATED,
                i.metadata.get("launch_time") or "",
            ),
            reverse=True,
        )
        return candidates[0]

    async def _describe_instances(
        self, filters: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """Describe EC2 instances matching ``filters``."""
        try:
            self._ensure_client()
            return await asyncio.to_thread(self._paginate_instances, filters)
        except Exception as e:
            self._handle_error("Describe instances", e)

    def _paginate_instances(self, filters: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        instances = []
        paginator = self._client.get_paginator("describe_instances")
        for page in paginator.paginate(Filters=filters):
            for reservation in page["Reservations"]:
                instances.extend(reservation["Instances"])
        return instances

    def _parse_instance(
        self, raw: Dict[str, Any], zone: str, instance_name: str
    ) -> Instance:
        launch_time = raw.get("LaunchTime")
        return Instance(
            name=instance_name,
            zone=raw.get("Placement", {}).get("AvailabilityZone", zone),
            instance_id=raw.get("InstanceId"),
            status=self._map_instance_state(raw.get("State", {}).get("Name", "")),
            networking=InstanceNetworking(
                private_ip=raw.get("PrivateIpAddress"),
                public_ip=raw.get("PublicIpAddress"),
                vpc_id=raw.get("VpcId"),
                subnet_id=raw.get("SubnetId"),
            ),
            metadata={"launch_time": str(launch_time) if launch_time else None},
        )

    def _map_instance_state(self, aws_state: str) -> InstanceStatus:
        """Map AWS instance state to our InstanceStatus enum."""
        return _STATE_MAPPING.get(aws_state, InstanceStatus.UNKNOWN)
