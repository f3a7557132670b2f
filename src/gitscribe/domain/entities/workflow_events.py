"""Server-sent event types emitted while a pipeline runs."""

from enum import Enum


class WorkflowEventType(str, Enum):
    STEP = "step"  # any state merge: current step + completed steps
    PROGRESS = "progress"  # per-repository progress inside a stage
    ERROR = "error"
    DONE = "done"


# The stream closes after either of these.
TERMINAL_EVENTS = frozenset({WorkflowEventType.ERROR, WorkflowEventType.DONE})
