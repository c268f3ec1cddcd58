"""Cloud driver interface."""

from abc import ABC, abstractmethod


class IDriver(ABC):
    """Interface over the compute provider's control plane.

    A driver handle is shared read-only by every step of a build and must be
    safe for sequential reuse.
    """

    @abstractmethod
    async def get_nat_ip(self, zone: str, instance_name: str) -> str:
        """Get the external (NAT) address of an instance.

        Args:
            zone: Placement zone of the instance
            instance_name: Name of the instance

        Returns:
            The public address

        Raises:
            DriverError: If the instance or its address cannot be found
        """
        pass

    @abstractmethod
    async def get_internal_ip(self, zone: str, instance_name: str) -> str:
        """Get the internal (private) address of an instance.

        Args:
            zone: Placement zone of the instance
            instance_name: Name of the instance

        Returns:
            The private address

        Raises:
            DriverError: If the instance or its address cannot be found
        """
        pass

    @abstractmethod
    async def wait_for_instance_state(
        self, state: str, zone: str, instance_name: str
    ) -> None:
        """Wait for an instance to reach a lifecycle state.

        Returns once the state is reached. Cancelling the awaiting task stops
        the wait; callers treat a cancelled wait as never having completed.

        Args:
            state: Target state name, e.g. ``"RUNNING"``
            zone: Placement zone of the instance
            instance_name: Name of the instance

        Raises:
            DriverError: If the instance cannot reach the target state
        """
        pass
