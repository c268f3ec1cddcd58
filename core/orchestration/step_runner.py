import asyncio
import logging
from typing import List, Sequence

from core.interfaces.step_interface import IStep
from core.models.state import ExecutionState, StepAction
from core.models.workflow import RunResult, RunStatus, StepResult


class StepRunner:
    """Sequential runner for build steps.

    Steps run one at a time against a single ExecutionState. The first step
    that returns HALT stops the run. Every step that was started is cleaned
    up afterwards in reverse order.
    """

    def __init__(self, steps: Sequence[IStep]):
        self.steps = list(steps)
        self.logger = logging.getLogger(__name__)
        self._cancel = asyncio.Event()

    def _handle_error(self, message: str, error: Exception) -> str:
        """Centralized error handling."""
        error_msg = f"{message}: {str(error)}"
        self.logger.error(error_msg)
        return error_msg

    def cancel(self) -> None:
        """Abort the run; the current step sees its cancel event set."""
        self.logger.warning("Cancelling build run")
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    async def run(self, state: ExecutionState) -> RunResult:
        """Run all steps against ``state``."""
        run_result = RunResult()
        run_result.mark_started()
        started: List[IStep] = []
        final_status = RunStatus.COMPLETED

        try:
            for step in self.steps:
                if self.cancelled:
                    final_status = RunStatus.CANCELLED
                    break

                step_result = StepResult(step_name=step.name)
                run_result.add_step_result(step_result)
                step_result.mark_started()
                started.append(step)

                self.logger.info(f"Running step: {step.name}")
                action = await step.run(state, self._cancel)

                if action == StepAction.HALT:
                    error = str(state.error) if state.error is not None else None
                    step_result.mark_halted(error)
                    final_status = (
                        RunStatus.CANCELLED if self.cancelled else RunStatus.HALTED
                    )
                    self.logger.error(f"Step {step.name} halted the build")
                    break

                step_result.mark_completed()
        finally:
            self._cleanup(started, state, run_result)

        error = str(state.error) if state.error is not None else None
        run_result.mark_finished(final_status, error)
        self.logger.info(f"Build run {run_result.run_id} finished: {final_status.value}")
        return run_result

    def _cleanup(
        self, started: List[IStep], state: ExecutionState, run_result: RunResult
    ) -> None:
        """Clean up started steps in reverse order."""
        pairs = list(zip(started, run_result.step_results))
        for step, step_result in reversed(pairs):
            try:
                step.cleanup(state)
            except Exception as e:
                step_result.cleanup_error = self._handle_error(
                    f"Cleanup failed for {step.name}", e
                )
