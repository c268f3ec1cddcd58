from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, List, Optional, Any
from uuid import uuid4


class StepStatus(Enum):
    """Step execution status."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    HALTED = "halted"


class RunStatus(Enum):
    """Overall build run status."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    HALTED = "halted"
    CANCELLED = "cancelled"


@dataclass
class StepResult:
    """Result of a single step execution."""
    step_name: str
    status: StepStatus = StepStatus.PENDING

    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    error_message: Optional[str] = None
    cleanup_error: Optional[str] = None

    @property
    def duration(self) -> Optional[timedelta]:
        """Calculate step duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return None

    @property
    def is_successful(self) -> bool:
        return self.status == StepStatus.COMPLETED

    def mark_started(self) -> None:
        """Mark step as started."""
        self.status = StepStatus.RUNNING
        self.start_time = datetime.utcnow()

    def mark_completed(self) -> None:
        """Mark step as completed."""
        self.status = StepStatus.COMPLETED
        self.end_time = datetime.utcnow()

    def mark_halted(self, error: Optional[str]) -> None:
        """Mark step as halted."""
        self.status = StepStatus.HALTED
        self.end_time = datetime.utcnow()
        self.error_message = error


@dataclass
class RunResult:
    """Complete build run result."""

    run_id: str = field(default_factory=lambda: str(uuid4()))
    status: RunStatus = RunStatus.PENDING
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    step_results: List[StepResult] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    @property
    def duration(self) -> Optional[timedelta]:
        """Calculate total run duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return None

    @property
    def is_successful(self) -> bool:
        """Check if every step ran and continued."""
        return self.status == RunStatus.COMPLETED

    @property
    def halted_step(self) -> Optional[StepResult]:
        """The step that stopped the run, if any."""
        for result in self.step_results:
            if result.status == StepStatus.HALTED:
                return result
        return None

    def add_step_result(self, step_result: StepResult) -> None:
        self.step_results.append(step_result)

    def mark_started(self) -> None:
        """Mark run as started."""
        self.status = RunStatus.RUNNING
        if self.start_time is None:
            self.start_time = datetime.utcnow()

    def mark_finished(self, status: RunStatus, error: Optional[str] = None) -> None:
        """Mark run as finished with ``status``."""
        self.status = status
        self.end_time = datetime.utcnow()
        if error:
            self.errors.append(error)

    def get_summary(self) -> Dict[str, Any]:
        """Get run execution summary."""
        halted = self.halted_step
        return {
            'run_id': self.run_id,
            'status': self.status.value,
            'duration': str(self.duration) if self.duration else None,
            'steps_run': len(self.step_results),
            'steps_completed': len([s for s in self.step_results if s.is_successful]),
            'halted_step': halted.step_name if halted else None,
            'errors': list(self.errors),
        }
