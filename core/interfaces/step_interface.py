"""Pipeline step interface."""

import asyncio
from abc import ABC, abstractmethod
from typing import Optional

from core.models.state import ExecutionState, StepAction


class IStep(ABC):
    """Interface for one unit of work in a sequential build pipeline."""

    @property
    def name(self) -> str:
        """Step name used in logs and run results."""
        return type(self).__name__

    @abstractmethod
    async def run(
        self, state: ExecutionState, cancel: Optional[asyncio.Event] = None
    ) -> StepAction:
        """Run the step against the shared execution state.

        Args:
            state: Execution state shared by every step of the build
            cancel: Event set by the runner when the build is aborted

        Returns:
            StepAction.CONTINUE to proceed, StepAction.HALT to stop the build.
            On HALT the step has stored the cause in ``state.error``.
        """
        pass

    @abstractmethod
    def cleanup(self, state: ExecutionState) -> None:
        """Release anything the step created.

        Called by the runner regardless of the outcome of ``run``. Must be
        idempotent and must not raise.
        """
        pass
