"""Build pipeline steps."""

from .instance_info_step import InstanceInfoStep

__all__ = ['InstanceInfoStep']
