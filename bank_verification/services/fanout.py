"""Best-effort execution of independent downstream side effects."""
from dataclasses import dataclass
from typing import Any, Callable, Optional

import structlog

from bank_verification.logging import TimedOperation, get_logger
from bank_verification import metrics


@dataclass
class StepFailure:
    """A downstream step that raised and was skipped."""
    step: str
    error: str


class BestEffortFanOut:
    """
    Runs downstream calls one after another, each inside its own fault boundary.

    A failing step is logged, counted and recorded in ``failures``; its
    caller gets ``default`` back and the sequence carries on. Nothing is
    rolled back and nothing is retried.
    """

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None, **context: Any):
        self.logger = logger or get_logger(__name__)
        self.context = context
        self.failures: list[StepFailure] = []

    def run(self, step: str, func: Callable[..., Any], *args: Any, default: Any = None, **kwargs: Any) -> Any:
        """Call ``func(*args, **kwargs)``; on error return ``default``."""
        try:
            with TimedOperation(step, logger=self.logger, **self.context):
                return func(*args, **kwargs)
        except Exception as e:
            self.failures.append(StepFailure(step=step, error=str(e)))
            metrics.record_fanout_failure(step)
            self.logger.error(
                "fanout_step_failed",
                step=step,
                error_type=type(e).__name__,
                error=str(e),
                **self.context,
            )
            return default

    @property
    def failed_steps(self) -> list[str]:
        return [failure.step for failure in self.failures]

    def summarize(self) -> None:
        """Log one line describing how the fan-out went."""
        if self.failures:
            self.logger.warning(
                "fanout_completed_with_failures",
                failed_steps=self.failed_steps,
                **self.context,
            )
        else:
            self.logger.info("fanout_completed", **self.context)
