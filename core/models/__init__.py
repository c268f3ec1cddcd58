"""Core data models for the instance info step."""

from .instance import Instance, InstanceNetworking, InstanceStatus
from .config import BuildConfig, AWSConfig, LogLevel, RunMode
from .state import ExecutionState, StepAction
from .workflow import RunResult, RunStatus, StepResult, StepStatus

__all__ = [
    'Instance',
    'InstanceNetworking',
    'InstanceStatus',
    'BuildConfig',
    'AWSConfig',
    'LogLevel',
    'RunMode',
    'ExecutionState',
    'StepAction',
    'RunResult',
    'RunStatus',
    'StepResult',
    'StepStatus'
]
