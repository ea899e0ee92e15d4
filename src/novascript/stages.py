"""Workflow stages and the transition table that governs them."""

from __future__ import annotations

from enum import Enum

from .errors import InvalidTransitionError


class WorkflowStage(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    SUMMARIZING = "summarizing"
    GENERATING_SCRIPT = "generating-script"
    GENERATING_IMAGES = "generating-images"
    COMPLETED = "completed"

    @property
    def label(self) -> str:
        """Status-bar label shown by the front-end."""
        return STAGE_LABELS[self]

    @property
    def is_running(self) -> bool:
        return self not in (WorkflowStage.IDLE, WorkflowStage.COMPLETED)


STAGE_LABELS: dict[WorkflowStage, str] = {
    WorkflowStage.IDLE: "IDLE",
    WorkflowStage.FETCHING: "DATA_SCAN",
    WorkflowStage.SUMMARIZING: "NEURAL_SYNTHESIS",
    WorkflowStage.GENERATING_SCRIPT: "SCRIPT_COMPILING",
    WorkflowStage.GENERATING_IMAGES: "VISUAL_VECTORING",
    WorkflowStage.COMPLETED: "LINK_ESTABLISHED",
}

# Ordered stages of a successful run, as shown on the progress HUD.
PROGRESS_STAGES: tuple[WorkflowStage, ...] = (
    WorkflowStage.FETCHING,
    WorkflowStage.SUMMARIZING,
    WorkflowStage.GENERATING_SCRIPT,
    WorkflowStage.GENERATING_IMAGES,
    WorkflowStage.COMPLETED,
)

TRANSITIONS: dict[WorkflowStage, frozenset[WorkflowStage]] = {
    WorkflowStage.IDLE: frozenset({WorkflowStage.FETCHING}),
    WorkflowStage.FETCHING: frozenset({WorkflowStage.SUMMARIZING, WorkflowStage.IDLE}),
    WorkflowStage.SUMMARIZING: frozenset(
        {WorkflowStage.GENERATING_SCRIPT, WorkflowStage.IDLE}
    ),
    WorkflowStage.GENERATING_SCRIPT: frozenset(
        {WorkflowStage.GENERATING_IMAGES, WorkflowStage.IDLE}
    ),
    WorkflowStage.GENERATING_IMAGES: frozenset(
        {WorkflowStage.COMPLETED, WorkflowStage.IDLE}
    ),
    WorkflowStage.COMPLETED: frozenset({WorkflowStage.FETCHING}),
}


class StageTracker:
    """Holds the current stage and only moves along the transition table."""

    def __init__(self, initial: WorkflowStage = WorkflowStage.IDLE) -> None:
        self._stage = initial

    @property
    def stage(self) -> WorkflowStage:
        return self._stage

    def can_advance(self, target: WorkflowStage) -> bool:
        return target in TRANSITIONS[self._stage]

    def advance(self, target: WorkflowStage) -> WorkflowStage:
        """Move to ``target``; raises InvalidTransitionError if the table forbids it."""
        if not self.can_advance(target):
            raise InvalidTransitionError(self._stage, target)
        self._stage = target
        return target

    def reset(self) -> None:
        """Return to idle after a failure. A no-op when already idle."""
        if self._stage is WorkflowStage.IDLE:
            return
        self.advance(WorkflowStage.IDLE)
