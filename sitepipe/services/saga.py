"""
Saga
Ordered step log paired with a compensating-action table.

Each completed step may register a compensation. When a later step fails,
registered compensations run in reverse order and the original error is
re-raised unchanged; a compensation that itself fails is logged and
recorded but never replaces that error.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, TypeVar

from sitepipe.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


class StepStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    COMPENSATED = "compensated"
    COMPENSATION_FAILED = "compensation_failed"


@dataclass
class SagaStep:
    name: str
    status: StepStatus
    error: Optional[str] = None
    compensation_error: Optional[str] = None


@dataclass
class Saga:
    """A single run of a multi-step workflow."""

    name: str
    steps: List[SagaStep] = field(default_factory=list)
    _compensations: Dict[str, Callable[[], Any]] = field(default_factory=dict, repr=False)

    def execute(
        self,
        step_name: str,
        action: Callable[[], T],
        compensation: Optional[Callable[[T], Any]] = None
    ) -> T:
        """
        Run one step.

        Args:
            step_name: Unique name of the step within this saga
            action: Zero-argument callable performing the step
            compensation: Called with the step's result to undo it if a
                later step fails

        Returns:
            Whatever ``action`` returned

        Raises:
            Whatever ``action`` raised, after compensating earlier steps
        """
        logger.debug(f"[{self.name}] step {step_name} starting")

        try:
            result = action()
        except Exception as exc:
            self.steps.append(SagaStep(step_name, StepStatus.FAILED, error=str(exc)))
            logger.error(f"[{self.name}] step {step_name} failed: {exc}")
            self.compensate()
            raise

        self.steps.append(SagaStep(step_name, StepStatus.COMPLETED))
        if compensation is not None:
            self._compensations[step_name] = lambda: compensation(result)

        return result

    def compensate(self) -> None:
        """Undo completed steps, newest first."""
        for step in reversed(self.steps):
            if step.status is not StepStatus.COMPLETED:
                continue
            undo = self._compensations.pop(step.name, None)
            if undo is None:
                continue

            logger.info(f"[{self.name}] compensating step {step.name}")
            try:
                undo()
            except Exception as exc:
                step.status = StepStatus.COMPENSATION_FAILED
                step.compensation_error = str(exc)
                logger.error(
                    f"[{self.name}] compensation for {step.name} failed, "
                    f"resource left orphaned: {exc}"
                )
            else:
                step.status = StepStatus.COMPENSATED

    def step(self, name: str) -> Optional[SagaStep]:
        for entry in self.steps:
            if entry.name == name:
                return entry
        return None

    @property
    def failed_step(self) -> Optional[SagaStep]:
        for entry in self.steps:
            if entry.status is StepStatus.FAILED:
                return entry
        return None

    @property
    def compensation_failed(self) -> bool:
        return any(s.status is StepStatus.COMPENSATION_FAILED for s in self.steps)
