"""AgentManager - walks the transition table, running ready stages and merging their output."""

import logging
from collections.abc import Callable, Mapping, Sequence

from gitscribe.domain.entities.workflow_state import Progress, WorkflowState, merge_state
from gitscribe.domain.entities.workflow_step import AgentStep
from gitscribe.domain.exceptions import GitScribeError, WorkflowAbortedError
from gitscribe.domain.services.error_keys import MANAGER_SCOPE, error_key
from gitscribe.infrastructure.workflow.graph import AGENT_GRAPH, GraphEdge, StageNode, get_next_step

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 20

StateObserver = Callable[[WorkflowState], None]
ProgressObserver = Callable[[Progress], None]


class AgentManager:
    """Sequential stepper over the stage pipeline.

    State is owned here; stages get a shallow copy and return partial
    updates, which are merged (see merge_state) and pushed to observers.
    Observer exceptions are not caught.
    """

    def __init__(
        self,
        initial_state: WorkflowState,
        on_state_update: StateObserver | None = None,
        on_progress: ProgressObserver | None = None,
        *,
        nodes: Mapping[AgentStep, StageNode],
        edges: Sequence[GraphEdge] = AGENT_GRAPH,
        first_step: AgentStep = AgentStep.DISCOVERY,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ) -> None:
        self._state: WorkflowState = merge_state({"completed_steps": set(), "errors": {}}, initial_state)
        self._on_state_update = on_state_update
        self._on_progress = on_progress
        self._nodes = dict(nodes)
        self._edges = tuple(edges)
        self._first_step = first_step
        self._max_iterations = max_iterations
        self._observer_error: BaseException | None = None

    def get_state(self) -> WorkflowState:
        """Shallow copy of the current state."""
        return {**self._state}

    def reset(self, new_state: WorkflowState | None = None) -> None:
        """Clear status fields and apply new inputs for another run."""
        self._state = {
            **self._state,
            **(new_state or {}),
            "current_step": None,
            "completed_steps": set(),
            "errors": {},
        }

    def _update_state(self, updates: WorkflowState) -> None:
        self._state = merge_state(self._state, updates)
        try:
            if self._on_state_update:
                self._on_state_update(self.get_state())
            progress = updates.get("progress")
            if progress and self._on_progress:
                self._on_progress(progress)
        except Exception as e:
            self._observer_error = e
            raise

    def _report_progress(self, progress: Progress) -> None:
        self._update_state({"progress": progress})

    async def execute_step(self, step: AgentStep) -> bool:
        """Run one stage if its readiness predicate holds. Returns whether it ran."""
        node = self._nodes.get(step)
        if node is None:
            raise GitScribeError(f"No stage registered for step: {step.value}")
        if not node.should_run(self._state):
            logger.debug("Skipping %s - conditions not met", step.value)
            return False
        logger.info("Executing %s", step.value)
        updates = await node.execute(self.get_state(), self._report_progress)
        self._update_state(updates)
        return True

    async def run(self) -> WorkflowState:
        """Run to completion or fatal abort. Failures end up in state['errors']."""
        logger.info(
            "Starting agent workflow: %d selected repositories",
            len(self._state.get("selected_repos") or []),
        )
        self._update_state({"current_step": self._first_step})

        current: AgentStep | None = self._first_step
        iterations = 0
        while current is not None and current != AgentStep.COMPLETE and iterations < self._max_iterations:
            iterations += 1
            logger.debug("Iteration %d: step %s", iterations, current.value)
            try:
                executed = await self.execute_step(current)
                next_step = get_next_step(current, self._state, self._edges)

                if executed:
                    if next_step is None:
                        logger.info("No next step from %s, completing workflow", current.value)
                        break
                    if next_step == current:
                        logger.warning("Workflow stuck at %s, breaking", current.value)
                        break
                    if current == AgentStep.DISCOVERY and not self._state.get("discovered_repos"):
                        logger.error("Discovery completed but no repositories found, stopping workflow")
                        self._update_state(
                            {"errors": {MANAGER_SCOPE: "No repositories discovered. Cannot proceed with workflow."}}
                        )
                        break
                else:
                    if current == self._first_step:
                        raise WorkflowAbortedError(
                            f"{current.value} step was skipped; check that selected repositories are provided"
                        )
                    if next_step is None or next_step == current:
                        logger.warning("Cannot proceed from skipped step %s, breaking", current.value)
                        break
                    logger.warning("Step %s skipped, continuing to %s", current.value, next_step.value)

                current = next_step
                self._update_state({"current_step": current})
            except Exception as e:
                if e is self._observer_error:
                    raise
                logger.error("Error in step %s: %s", current.value, e)
                self._update_state({"errors": {error_key(current): str(e) or "Workflow error"}})
                break
        else:
            if current is not None and current != AgentStep.COMPLETE:
                logger.error("Workflow exceeded %d iterations, stopping", self._max_iterations)
                self._update_state({"errors": {MANAGER_SCOPE: "Workflow exceeded maximum iterations"}})

        self._update_state({"current_step": AgentStep.COMPLETE, "completed_steps": {AgentStep.COMPLETE}})
        logger.info(
            "Workflow completed: %d steps, %d errors",
            len(self._state["completed_steps"]),
            len(self._state["errors"]),
        )
        return self.get_state()


async def run_agent_workflow(
    initial_state: WorkflowState,
    on_state_update: StateObserver | None = None,
    on_progress: ProgressObserver | None = None,
    *,
    nodes: Mapping[AgentStep, StageNode],
    **options,
) -> WorkflowState:
    """Build an AgentManager and run it."""
    manager = AgentManager(initial_state, on_state_update, on_progress, nodes=nodes, **options)
    return await manager.run()
