"""Core interfaces for the instance info step."""

from .driver_interface import IDriver
from .step_interface import IStep
from .config_interface import IConfigService

__all__ = [
    'IDriver',
    'IStep',
    'IConfigService'
]
