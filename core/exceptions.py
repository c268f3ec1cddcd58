"""Exceptions raised by the instance info step and its drivers."""

from typing import Optional


class InstanceInfoError(Exception):
    """Base exception for all instance info failures."""

    pass


class ConfigurationError(InstanceInfoError):
    """Error loading or validating build configuration."""

    pass


class StepInputError(InstanceInfoError):
    """A value the step needs was not present in the execution state."""

    def __init__(self, key: str):
        super().__init__(f"Required state value '{key}' is missing")
        self.key = key


class AddressLookupError(InstanceInfoError):
    """The driver could not resolve the requested address."""

    def __init__(self, instance_name: str, address_type: str, reason: str):
        super().__init__(
            f"Error retrieving {address_type} address for instance {instance_name}: {reason}"
        )
        self.instance_name = instance_name
        self.address_type = address_type


class ReadinessWaitError(InstanceInfoError):
    """The readiness wait itself reported failure."""

    def __init__(self, instance_name: str, reason: str):
        super().__init__(f"Error waiting for instance {instance_name}: {reason}")
        self.instance_name = instance_name


class ReadinessTimeoutError(InstanceInfoError):
    """The configured state timeout elapsed before the instance was ready."""

    def __init__(self, instance_name: str, timeout: float):
        super().__init__(
            f"Timeout waiting for instance {instance_name} to become ready after {timeout}s"
        )
        self.instance_name = instance_name
        self.timeout = timeout


class StepCancelledError(InstanceInfoError):
    """The build was cancelled while waiting for the instance."""

    def __init__(self, instance_name: str):
        super().__init__(f"Cancelled while waiting for instance {instance_name}")
        self.instance_name = instance_name


class DriverError(InstanceInfoError):
    """Base exception for cloud driver failures."""

    def __init__(self, message: str, instance_name: Optional[str] = None):
        super().__init__(message)
        self.instance_name = instance_name


class InstanceNotFoundError(DriverError):
    """No instance with the requested name exists in the zone."""

    def __init__(self, zone: str, instance_name: str):
        super().__init__(f"Instance {instance_name} not found in zone {zone}", instance_name)
        self.zone = zone


class AddressNotAssignedError(DriverError):
    """The instance has no address of the requested type."""

    def __init__(self, instance_name: str, address_type: str):
        super().__init__(
            f"Instance {instance_name} has no {address_type} address assigned", instance_name
        )
        self.address_type = address_type


class InstanceStateError(DriverError):
    """The instance reached a state from which the target state is unreachable."""

    def __init__(self, instance_name: str, current_state: str, target_state: str):
        super().__init__(
            f"Instance {instance_name} entered {current_state} state "
            f"while waiting for {target_state}",
            instance_name,
        )
        self.current_state = current_state
        self.target_state = target_state
