"""Instance readiness and address resolution step."""

import asyncio
import logging
from typing import Optional

from core.exceptions import (
    AddressLookupError,
    InstanceInfoError,
    ReadinessTimeoutError,
    ReadinessWaitError,
    StepCancelledError,
    StepInputError,
)
from core.interfaces.driver_interface import IDriver
from core.interfaces.step_interface import IStep
from core.models.config import BuildConfig
from core.models.instance import InstanceStatus
from core.models.state import ExecutionState, StepAction


def _discard_outcome(task: asyncio.Future) -> None:
    """Consume the outcome of an abandoned readiness wait."""
    if not task.cancelled():
        task.exception()


class InstanceInfoStep(IStep):
    """Wait for the build instance to run, then publish its address.

    Reads ``config``, ``driver`` and ``instance_name`` from the execution
    state. On success ``instance_ip`` holds the NAT address, or the internal
    address when ``config.use_internal_ip`` is set. On failure ``error``
    holds an :class:`InstanceInfoError` and no address is published, even
    one that was already resolved before the readiness wait failed.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)

    async def run(
        self, state: ExecutionState, cancel: Optional[asyncio.Event] = None
    ) -> StepAction:
        """Resolve the instance address and confirm it is running."""
        try:
            config, driver, instance_name = self._read_inputs(state)

            self.logger.info(f"Waiting for instance {instance_name} to become ready...")
            address = await self._lookup_address(driver, config, instance_name)
            await self._await_running(driver, config, instance_name, cancel)
        except InstanceInfoError as e:
            return self._halt(state, e)

        state.instance_ip = address
        self.logger.info(f"IP: {address}")
        return StepAction.CONTINUE

    def cleanup(self, state: ExecutionState) -> None:
        """Nothing to release; instance teardown belongs to a later step."""

    def _read_inputs(self, state: ExecutionState):
        if state.config is None:
            raise StepInputError("config")
        if state.driver is None:
            raise StepInputError("driver")
        if not state.instance_name:
            raise StepInputError("instance_name")
        return state.config, state.driver, state.instance_name

    async def _lookup_address(
        self, driver: IDriver, config: BuildConfig, instance_name: str
    ) -> str:
        """Fetch the address selected by ``config.use_internal_ip``."""
        address_type = "internal" if config.use_internal_ip else "NAT"
        try:
            if config.use_internal_ip:
                return await driver.get_internal_ip(config.zone, instance_name)
            return await driver.get_nat_ip(config.zone, instance_name)
        except Exception as e:
            raise AddressLookupError(instance_name, address_type, str(e)) from e

    async def _await_running(
        self,
        driver: IDriver,
        config: BuildConfig,
        instance_name: str,
        cancel: Optional[asyncio.Event],
    ) -> None:
        """Race the driver's readiness wait against the timeout and ``cancel``.

        The losing readiness task is cancelled and its outcome discarded, so
        nothing it produces after this method returns is ever observed.
        """
        if cancel is not None and cancel.is_set():
            raise StepCancelledError(instance_name)

        wait_task = asyncio.ensure_future(
            driver.wait_for_instance_state(
                InstanceStatus.RUNNING.value, config.zone, instance_name
            )
        )
        wait_task.add_done_callback(_discard_outcome)
        waiters = {wait_task}

        cancel_task = None
        if cancel is not None:
            cancel_task = asyncio.ensure_future(cancel.wait())
            waiters.add(cancel_task)

        try:
            done, _ = await asyncio.wait(
                waiters,
                timeout=config.state_timeout,
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            for task in waiters:
                if not task.done():
                    task.cancel()

        # Cancellation wins when it lands together with the readiness result.
        if cancel_task is not None and cancel_task in done:
            raise StepCancelledError(instance_name)

        if wait_task not in done:
            self.logger.debug(
                f"Abandoning readiness wait for {instance_name} after {config.state_timeout}s"
            )
            raise ReadinessTimeoutError(instance_name, config.state_timeout)

        if wait_task.cancelled():
            raise StepCancelledError(instance_name)

        error = wait_task.exception()
        if error is not None:
            raise ReadinessWaitError(instance_name, str(error)) from error

    def _halt(self, state: ExecutionState, error: InstanceInfoError) -> StepAction:
        state.error = error
        self.logger.error(str(error))
        return StepAction.HALT
