"""Four-stage progress indicator shown while an opening is generated."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from pydantic import BaseModel

log = logging.getLogger(__name__)


class StepStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"


class ProgressStep(BaseModel):
    id: int
    label: str
    status: StepStatus = StepStatus.PENDING


UPLOAD, MUSIC, VIDEO, MERGE = 1, 2, 3, 4

STEP_LABELS = {
    UPLOAD: "Uploading Image",
    MUSIC: "Generating Music",
    VIDEO: "Creating Video",
    MERGE: "Merging & Finalizing",
}


class ProgressTracker:
    """Holds the step states and notifies ``on_change`` after every update."""

    def __init__(self, on_change: Callable[[ProgressStep], None] | None = None):
        self.on_change = on_change
        self.steps: list[ProgressStep] = []
        self.error: str | None = None
        self.reset()

    def reset(self) -> None:
        self.steps = [ProgressStep(id=i, label=label) for i, label in STEP_LABELS.items()]
        self.error = None

    def step(self, step_id: int) -> ProgressStep:
        for step in self.steps:
            if step.id == step_id:
                return step
        raise KeyError(f"Unknown progress step {step_id}")

    def update(self, step_id: int, status: StepStatus) -> None:
        step = self.step(step_id)
        step.status = status
        log.debug("Step %d (%s) -> %s", step.id, step.label, status.value)
        if self.on_change is not None:
            self.on_change(step)

    def fail_in_flight(self, message: str) -> list[int]:
        """Mark every processing step as errored and remember ``message``."""
        self.error = message
        failed = [s.id for s in self.steps if s.status is StepStatus.PROCESSING]
        for step_id in failed:
            self.update(step_id, StepStatus.ERROR)
        return failed

    @property
    def completed_fraction(self) -> float:
        done = sum(1 for s in self.steps if s.status is StepStatus.COMPLETED)
        return done / len(self.steps)
