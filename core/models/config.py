import math
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


DEFAULT_STATE_TIMEOUT_SECONDS = 300.0


class LogLevel(Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


class RunMode(Enum):
    """How AWS credentials are obtained."""
    LOCAL = "local"
    PIPELINE = "pipeline"


@dataclass
class AWSConfig:
    """AWS configuration."""
    region: str = "ap-southeast-2"
    role_name: Optional[str] = None
    account_id: Optional[str] = None
    run_mode: RunMode = RunMode.LOCAL
    poll_interval: float = 5.0


@dataclass(frozen=True)
class BuildConfig:
    """Per-build settings read by the instance info step.

    Created once when the build starts and treated as read-only afterwards.
    """

    zone: str
    use_internal_ip: bool = False
    state_timeout: float = DEFAULT_STATE_TIMEOUT_SECONDS  # seconds

    aws: AWSConfig = field(default_factory=AWSConfig)
    log_level: LogLevel = LogLevel.INFO

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.zone:
            errors.append("zone must be set")

        if not math.isfinite(self.state_timeout) or self.state_timeout <= 0:
            errors.append("state_timeout must be a positive, finite number of seconds")

        if not self.aws.region:
            errors.append("AWS region is required")

        if not math.isfinite(self.aws.poll_interval) or self.aws.poll_interval <= 0:
            errors.append("AWS poll interval must be a positive, finite number of seconds")

        return errors
