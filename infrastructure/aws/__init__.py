"""AWS infrastructure implementations."""

from .ec2_driver import EC2Driver
from .session_manager import AWSSessionManager

__all__ = [
    'EC2Driver',
    'AWSSessionManager'
]
