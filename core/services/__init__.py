"""Core services for the instance info step."""

from .config_service import ConfigService

__all__ = [
    'ConfigService'
]
