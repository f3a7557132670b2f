"""Error-key scheme for WorkflowState.errors.

Keys are underscore-joined scopes:

    "<stage>"                       whole-stage or stage-fatal failure
    "<stage>_<owner/name>"          one repository failed inside a stage
    "gitops_<owner/name>_<path>"    one file failed to commit
    "manager"                       stepper-fatal condition

Stage names never contain underscores, so the first segment is always the scope.
"""

from gitscribe.domain.entities.workflow_step import PIPELINE_ORDER, AgentStep, StepStatus

MANAGER_SCOPE = "manager"


def error_key(scope: AgentStep | str, *parts: str) -> str:
    """Build an error key from a scope and optional repo/path parts."""
    head = scope.value if isinstance(scope, AgentStep) else scope
    return "_".join([head, *parts])


def split_error_key(key: str) -> tuple[str, str | None]:
    """Split a key into (scope, remainder). Remainder is None for bare scopes."""
    scope, sep, rest = key.partition("_")
    return scope, (rest if sep else None)


def errors_for_step(errors: dict[str, str], step: AgentStep) -> dict[str, str]:
    """Errors whose scope is the given stage."""
    return {k: v for k, v in errors.items() if split_error_key(k)[0] == step.value}


def step_statuses(completed: set[AgentStep], errors: dict[str, str]) -> dict[AgentStep, StepStatus]:
    """Status of every pipeline stage, in pipeline order. Errors win over completion."""
    statuses = {}
    for step in PIPELINE_ORDER:
        if errors_for_step(errors, step):
            statuses[step] = StepStatus.ERROR
        elif step in completed:
            statuses[step] = StepStatus.COMPLETED
        else:
            statuses[step] = StepStatus.PENDING
    return statuses
