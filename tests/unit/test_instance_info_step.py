"""Unit tests for InstanceInfoStep."""

import asyncio
import dataclasses
import gc

import pytest

from core.exceptions import (
    AddressLookupError,
    ReadinessTimeoutError,
    ReadinessWaitError,
    StepCancelledError,
    StepInputError,
)
from core.interfaces.step_interface import IStep
from core.models.config import BuildConfig
from core.models.state import ExecutionState, StepAction
from core.steps.instance_info_step import InstanceInfoStep
from infrastructure.mock.driver import MockDriver


class TestInstanceInfoStep:
    """Test cases for InstanceInfoStep."""

    def setup_method(self):
        """Set up a state holding a config and a scripted driver."""
        self.driver = MockDriver()
        self.state = ExecutionState(
            config=BuildConfig(zone="us-east-1a", state_timeout=5.0),
            driver=self.driver,
        )
        self.step = InstanceInfoStep()

    def teardown_method(self):
        self.step.cleanup(self.state)

    def _configure(self, **changes):
        self.state.config = dataclasses.replace(self.state.config, **changes)

    def test_implements_step_interface(self):
        assert isinstance(self.step, IStep)
        assert self.step.name == "InstanceInfoStep"

    @pytest.mark.asyncio
    async def test_publishes_nat_ip(self):
        self.state.put("instance_name", "foo")
        self.driver.get_nat_ip_result = "1.2.3.4"

        action = await self.step.run(self.state)

        assert action == StepAction.CONTINUE
        assert self.driver.wait_for_instance_state_arg == "RUNNING"
        assert self.driver.wait_for_instance_zone == "us-east-1a"
        assert self.driver.wait_for_instance_name == "foo"

        ip, ok = self.state.get_ok("instance_ip")
        assert ok
        assert ip == "1.2.3.4"
        assert self.state.error is None

    @pytest.mark.asyncio
    async def test_publishes_internal_ip(self):
        self.state.put("instance_name", "foo")
        self._configure(use_internal_ip=True)
        self.driver.get_nat_ip_result = "1.2.3.4"
        self.driver.get_internal_ip_result = "5.6.7.8"

        action = await self.step.run(self.state)

        assert action == StepAction.CONTINUE
        assert self.driver.wait_for_instance_state_arg == "RUNNING"
        assert self.driver.wait_for_instance_zone == "us-east-1a"
        assert self.driver.wait_for_instance_name == "foo"
        assert self.state.get("instance_ip") == "5.6.7.8"
        assert self.driver.get_internal_ip_calls == [("us-east-1a", "foo")]
        assert self.driver.get_nat_ip_calls == []

    @pytest.mark.asyncio
    async def test_nat_ip_error_halts_without_waiting(self):
        self.state.put("instance_name", "foo")
        cause = RuntimeError("error")
        self.driver.get_nat_ip_error = cause

        action = await self.step.run(self.state)

        assert action == StepAction.HALT
        error, ok = self.state.get_ok("error")
        assert ok
        assert isinstance(error, AddressLookupError)
        assert error.__cause__ is cause
        assert error.address_type == "NAT"
        assert "instance_ip" not in self.state
        assert self.driver.wait_for_instance_calls == []

    @pytest.mark.asyncio
    async def test_internal_ip_error_halts_without_waiting(self):
        self.state.put("instance_name", "foo")
        self._configure(use_internal_ip=True)
        self.driver.get_nat_ip_result = "1.2.3.4"
        self.driver.get_internal_ip_error = RuntimeError("no private address")

        action = await self.step.run(self.state)

        assert action == StepAction.HALT
        assert isinstance(self.state.error, AddressLookupError)
        assert self.state.error.address_type == "internal"
        assert "instance_ip" not in self.state
        assert self.driver.wait_for_instance_calls == []

    @pytest.mark.asyncio
    async def test_wait_error_halts(self):
        self.state.put("instance_name", "foo")
        self.driver.get_nat_ip_result = "1.2.3.4"
        self.driver.wait_for_instance_error = RuntimeError("error")

        action = await self.step.run(self.state)

        assert action == StepAction.HALT
        assert isinstance(self.state.error, ReadinessWaitError)
        assert isinstance(self.state.error.__cause__, RuntimeError)
        assert "instance_ip" not in self.state

    @pytest.mark.asyncio
    async def test_timeout_halts(self):
        self.state.put("instance_name", "foo")
        self._configure(state_timeout=0.001)
        self.driver.get_nat_ip_result = "1.2.3.4"
        self.driver.wait_for_instance_delay = 0.05

        action = await self.step.run(self.state)

        assert action == StepAction.HALT
        assert isinstance(self.state.error, ReadinessTimeoutError)
        assert self.state.error.timeout == 0.001
        assert "instance_ip" not in self.state

        # the abandoned wait is cancelled and never completes
        await asyncio.sleep(0.1)
        assert self.driver.wait_for_instance_cancelled
        assert not self.driver.wait_for_instance_completed
        assert "instance_ip" not in self.state

    @pytest.mark.asyncio
    async def test_late_readiness_result_is_not_observed(self):
        loop = asyncio.get_running_loop()
        signal = loop.create_future()
        self.state.put("instance_name", "foo")
        self._configure(state_timeout=0.01)
        self.driver.get_nat_ip_result = "1.2.3.4"
        self.driver.wait_for_instance_signal = signal

        action = await self.step.run(self.state)
        error = self.state.error
        before = self.state.snapshot()

        signal.set_result(None)
        await asyncio.sleep(0.01)

        assert action == StepAction.HALT
        assert isinstance(error, ReadinessTimeoutError)
        assert self.state.snapshot() == before
        assert self.state.error is error

    @pytest.mark.asyncio
    async def test_late_readiness_failure_is_not_observed(self, caplog):
        self.state.put("instance_name", "foo")
        self._configure(state_timeout=0.01)
        self.driver.get_nat_ip_result = "1.2.3.4"
        self.driver.wait_for_instance_delay = 0.05
        self.driver.wait_for_instance_error = RuntimeError("instance terminated")

        action = await self.step.run(self.state)
        error = self.state.error
        before = self.state.snapshot()

        await asyncio.sleep(0.1)
        gc.collect()

        assert action == StepAction.HALT
        assert isinstance(error, ReadinessTimeoutError)
        assert self.state.error is error
        assert self.state.snapshot() == before
        assert self.driver.wait_for_instance_cancelled
        assert not self.driver.wait_for_instance_completed
        assert "never retrieved" not in caplog.text
        assert "instance terminated" not in caplog.text

    @pytest.mark.asyncio
    async def test_cancellation_during_wait_halts(self):
        loop = asyncio.get_running_loop()
        cancel = asyncio.Event()
        self.state.put("instance_name", "foo")
        self.driver.get_nat_ip_result = "1.2.3.4"
        self.driver.wait_for_instance_signal = loop.create_future()

        loop.call_later(0.01, cancel.set)
        action = await self.step.run(self.state, cancel)

        assert action == StepAction.HALT
        assert isinstance(self.state.error, StepCancelledError)
        assert "instance_ip" not in self.state
        assert len(self.driver.wait_for_instance_calls) == 1

    @pytest.mark.asyncio
    async def test_cancellation_before_wait_skips_driver_wait(self):
        cancel = asyncio.Event()
        cancel.set()
        self.state.put("instance_name", "foo")
        self.driver.get_nat_ip_result = "1.2.3.4"

        action = await self.step.run(self.state, cancel)

        assert action == StepAction.HALT
        assert isinstance(self.state.error, StepCancelledError)
        assert self.driver.wait_for_instance_calls == []
        assert "instance_ip" not in self.state

    @pytest.mark.asyncio
    async def test_unset_cancel_event_does_not_interfere(self):
        self.state.put("instance_name", "foo")
        self.driver.get_nat_ip_result = "1.2.3.4"

        action = await self.step.run(self.state, asyncio.Event())

        assert action == StepAction.CONTINUE
        assert self.state.instance_ip == "1.2.3.4"

    @pytest.mark.asyncio
    async def test_missing_instance_name_halts(self):
        self.driver.get_nat_ip_result = "1.2.3.4"

        action = await self.step.run(self.state)

        assert action == StepAction.HALT
        assert isinstance(self.state.error, StepInputError)
        assert self.state.error.key == "instance_name"
        assert self.driver.get_nat_ip_calls == []
        assert self.driver.wait_for_instance_calls == []

    @pytest.mark.asyncio
    async def test_missing_driver_halts(self):
        self.state.put("instance_name", "foo")
        self.state.remove("driver")

        action = await self.step.run(self.state)

        assert action == StepAction.HALT
        assert isinstance(self.state.error, StepInputError)
        assert self.state.error.key == "driver"


class TestInstanceInfoStepCleanup:
    """Cleanup never raises and never touches the state."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "nat_error,wait_error,timeout,delay",
        [
            (None, None, 5.0, 0.0),
            (RuntimeError("nat"), None, 5.0, 0.0),
            (None, RuntimeError("wait"), 5.0, 0.0),
            (None, None, 0.001, 0.05),
        ],
        ids=["success", "address-error", "wait-error", "timeout"],
    )
    async def test_cleanup_after_run(self, nat_error, wait_error, timeout, delay):
        driver = MockDriver(nat_ip="1.2.3.4")
        driver.get_nat_ip_error = nat_error
        driver.wait_for_instance_error = wait_error
        driver.wait_for_instance_delay = delay
        state = ExecutionState(
            config=BuildConfig(zone="us-east-1a", state_timeout=timeout),
            driver=driver,
            instance_name="foo",
        )
        step = InstanceInfoStep()

        await step.run(state)
        before = state.snapshot()

        step.cleanup(state)
        step.cleanup(state)

        assert state.snapshot() == before
