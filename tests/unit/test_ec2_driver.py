from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
from botocore.exceptions import ClientError

from core.exceptions import (
    AddressNotAssignedError,
    DriverError,
    InstanceNotFoundError,
    InstanceStateError,
)
from core.models.config import AWSConfig, RunMode
from core.models.instance import InstanceStatus
from infrastructure.aws.ec2_driver import EC2Driver


def _page(*instances):
    return [{"Reservations": [{"Instances": list(instances)}]}]


def _instance(state="running", public_ip="1.2.3.4", private_ip="10.0.0.5",
              instance_id="i-0123456789abcdef0", launched=None):
    raw = {
        "InstanceId": instance_id,
        "State": {"Name": state},
        "Placement": {"AvailabilityZone": "us-east-1a"},
        "PrivateIpAddress": private_ip,
        "LaunchTime": launched or datetime(2024, 1, 1, tzinfo=timezone.utc),
    }
    if public_ip:
        raw["PublicIpAddress"] = public_ip
    return raw


class TestEC2Driver:
    """Test cases for EC2Driver against a mocked boto3 client."""

    def setup_method(self):
        self.client = Mock()
        self.paginator = self.client.get_paginator.return_value
        self.driver = EC2Driver(region="us-east-1", poll_interval=0, client=self.client)

    def test_from_config(self):
        aws_config = AWSConfig(
            region="eu-west-1",
            account_id="123456789012",
            role_name="BuildRole",
            run_mode=RunMode.PIPELINE,
            poll_interval=3.0,
        )

        driver = EC2Driver.from_config(aws_config)

        assert driver.region == "eu-west-1"
        assert driver.account_id == "123456789012"
        assert driver.role_name == "BuildRole"
        assert driver.run_mode == RunMode.PIPELINE
        assert driver.poll_interval == 3.0

    @pytest.mark.asyncio
    async def test_get_nat_ip(self):
        self.paginator.paginate.return_value = _page(_instance())

        ip = await self.driver.get_nat_ip("us-east-1a", "foo")

        assert ip == "1.2.3.4"
        self.client.get_paginator.assert_called_with("describe_instances")
        self.paginator.paginate.assert_called_with(Filters=[
            {"Name": "tag:Name", "Values": ["foo"]},
            {"Name": "availability-zone", "Values": ["us-east-1a"]},
        ])

    @pytest.mark.asyncio
    async def test_get_internal_ip(self):
        self.paginator.paginate.return_value = _page(_instance())

        assert await self.driver.get_internal_ip("us-east-1a", "foo") == "10.0.0.5"

    @pytest.mark.asyncio
    async def test_missing_public_address(self):
        self.paginator.paginate.return_value = _page(_instance(public_ip=None))

        with pytest.raises(AddressNotAssignedError):
            await self.driver.get_nat_ip("us-east-1a", "foo")

    @pytest.mark.asyncio
    async def test_instance_not_found(self):
        self.paginator.paginate.return_value = [{"Reservations": []}]

        with pytest.raises(InstanceNotFoundError):
            await self.driver.get_nat_ip("us-east-1a", "foo")

    @pytest.mark.asyncio
    async def test_client_error_becomes_driver_error(self):
        self.paginator.paginate.side_effect = ClientError(
            {"Error": {"Code": "UnauthorizedOperation", "Message": "denied"}},
            "DescribeInstances",
        )

        with pytest.raises(DriverError) as exc_info:
            await self.driver.get_nat_ip("us-east-1a", "foo")

        assert isinstance(exc_info.value.__cause__, ClientError)

    @pytest.mark.asyncio
    async def test_prefers_live_instance_over_terminated(self):
        old = _instance(state="terminated", public_ip="9.9.9.9", instance_id="i-old",
                        launched=datetime(2024, 6, 1, tzinfo=timezone.utc))
        live = _instance(state="running", public_ip="1.2.3.4", instance_id="i-new",
                         launched=datetime(2024, 1, 1, tzinfo=timezone.utc))
        self.paginator.paginate.return_value = _page(old, live)

        instance = await self.driver.describe_instance("us-east-1a", "foo")

        assert instance.instance_id == "i-new"
        assert instance.status == InstanceStatus.RUNNING

    @pytest.mark.asyncio
    async def test_wait_until_running(self):
        self.paginator.paginate.side_effect = [
            _page(_instance(state="pending")),
            _page(_instance(state="pending")),
            _page(_instance(state="running")),
        ]

        await self.driver.wait_for_instance_state("RUNNING", "us-east-1a", "foo")

        assert self.paginator.paginate.call_count == 3

    @pytest.mark.asyncio
    async def test_wait_fails_when_instance_terminates(self):
        self.paginator.paginate.side_effect = [
            _page(_instance(state="pending")),
            _page(_instance(state="shutting-down")),
        ]

        with pytest.raises(InstanceStateError) as exc_info:
            await self.driver.wait_for_instance_state("RUNNING", "us-east-1a", "foo")

        assert exc_info.value.current_state == "TERMINATED"
        assert exc_info.value.target_state == "RUNNING"

    @pytest.mark.asyncio
    async def test_wait_rejects_unknown_state(self):
        with pytest.raises(DriverError):
            await self.driver.wait_for_instance_state("HIBERNATING", "us-east-1a", "foo")
