"""Pipeline stage identifiers."""

from enum import Enum


class AgentStep(str, Enum):
    """Stages of the documentation pipeline, plus the terminal sentinel."""

    DISCOVERY = "discovery"
    ANALYSIS = "analysis"
    QUALITY = "quality"
    REFACTOR = "refactor"
    PLANNING = "planning"
    WRITING = "writing"
    GITOPS = "gitops"
    COMPLETE = "complete"


# Execution order of the seven working stages (COMPLETE excluded).
PIPELINE_ORDER: tuple[AgentStep, ...] = (
    AgentStep.DISCOVERY,
    AgentStep.ANALYSIS,
    AgentStep.QUALITY,
    AgentStep.REFACTOR,
    AgentStep.PLANNING,
    AgentStep.WRITING,
    AgentStep.GITOPS,
)


def ordered_steps(steps: set[AgentStep] | frozenset[AgentStep]) -> list[AgentStep]:
    """Return steps sorted by pipeline position, COMPLETE last."""
    rank = {step: i for i, step in enumerate((*PIPELINE_ORDER, AgentStep.COMPLETE))}
    return sorted(steps, key=lambda s: rank[s])


class StepStatus(str, Enum):
    """Outcome of one stage as reported to API consumers."""

    PENDING = "pending"
    COMPLETED = "completed"
    ERROR = "error"  # ran, but recorded at least one error
