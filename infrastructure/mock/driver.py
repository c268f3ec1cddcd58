"""Scripted driver for tests and dry runs."""

import asyncio
from typing import List, Optional, Tuple

from core.interfaces.driver_interface import IDriver


class MockDriver(IDriver):
    """Driver returning scripted values and recording every call.

    The readiness wait completes immediately unless ``wait_for_instance_delay``
    is set, or ``wait_for_instance_signal`` is given. The signal is a future
    whose result is the error to raise, or ``None`` for success.
    """

    def __init__(
        self,
        nat_ip: str = "",
        internal_ip: str = "",
    ):
        self.get_nat_ip_result = nat_ip
        self.get_nat_ip_error: Optional[Exception] = None
        self.get_internal_ip_result = internal_ip
        self.get_internal_ip_error: Optional[Exception] = None

        self.wait_for_instance_error: Optional[Exception] = None
        self.wait_for_instance_delay: float = 0.0
        self.wait_for_instance_signal: Optional[asyncio.Future] = None

        self.get_nat_ip_calls: List[Tuple[str, str]] = []
        self.get_internal_ip_calls: List[Tuple[str, str]] = []
        self.wait_for_instance_calls: List[Tuple[str, str, str]] = []
        self.wait_for_instance_completed = False
        self.wait_for_instance_cancelled = False

    @property
    def wait_for_instance_state_arg(self) -> Optional[str]:
        return self.wait_for_instance_calls[-1][0] if self.wait_for_instance_calls else None

    @property
    def wait_for_instance_zone(self) -> Optional[str]:
        return self.wait_for_instance_calls[-1][1] if self.wait_for_instance_calls else None

    @property
    def wait_for_instance_name(self) -> Optional[str]:
        return self.wait_for_instance_calls[-1][2] if self.wait_for_instance_calls else None

    async def get_nat_ip(self, zone: str, instance_name: str) -> str:
        self.get_nat_ip_calls.append((zone, instance_name))
        if self.get_nat_ip_error is not None:
            raise self.get_nat_ip_error
        return self.get_nat_ip_result

    async def get_internal_ip(self, zone: str, instance_name: str) -> str:
        self.get_internal_ip_calls.append((zone, instance_name))
        if self.get_internal_ip_error is not None:
            raise self.get_internal_ip_error
        return self.get_internal_ip_result

    async def wait_for_instance_state(
        self, state: str, zone: str, instance_name: str
    ) -> None:
        self.wait_for_instance_calls.append((state, zone, instance_name))
        try:
            if self.wait_for_instance_signal is not None:
                # shielded so a test can still resolve the signal after abandonment
                error = await asyncio.shield(self.wait_for_instance_signal)
            else:
                if self.wait_for_instance_delay:
                    await asyncio.sleep(self.wait_for_instance_delay)
                error = self.wait_for_instance_error
        except asyncio.CancelledError:
            self.wait_for_instance_cancelled = True
            raise

        self.wait_for_instance_completed = True
        if error is not None:
            raise error
