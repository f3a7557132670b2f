"""Workflow use case - runs the documentation pipeline through AgentManager."""

import asyncio
import logging
from collections.abc import AsyncIterator

from gitscribe.application.workflow.dto import (
    WorkflowRequest,
    WorkflowResponse,
    WorkflowStreamEvent,
)
from gitscribe.domain.entities.workflow_events import TERMINAL_EVENTS, WorkflowEventType
from gitscribe.domain.entities.workflow_state import Progress, WorkflowState
from gitscribe.domain.entities.workflow_step import ordered_steps
from gitscribe.domain.ports.config import AppConfig
from gitscribe.domain.ports.github import GitHubPort
from gitscribe.domain.ports.llm import LLMPort
from gitscribe.domain.ports.rag import RAGPort
from gitscribe.domain.services.error_keys import step_statuses
from gitscribe.infrastructure.workflow import AgentManager, build_stage_registry

logger = logging.getLogger(__name__)


def state_to_response(state: WorkflowState) -> WorkflowResponse:
    """Map final workflow state to response."""
    return WorkflowResponse(
        current_step=state.get("current_step"),
        completed_steps=ordered_steps(state.get("completed_steps") or set()),
        step_status=step_statuses(state.get("completed_steps") or set(), state.get("errors") or {}),
        errors=dict(state.get("errors") or {}),
        analyses=dict(state.get("repo_analyses") or {}),
        quality_reports=dict(state.get("quality_reports") or {}),
        badges=dict(state.get("badges") or {}),
        refactor_proposals=dict(state.get("refactor_proposals") or {}),
        documentation_plans=dict(state.get("documentation_plans") or {}),
        generated_docs=dict(state.get("generated_docs_full") or {}),
        commits=dict(state.get("commits") or {}),
    )


def _step_payload(state: WorkflowState) -> dict:
    current = state.get("current_step")
    completed = state.get("completed_steps") or set()
    statuses = step_statuses(completed, state.get("errors") or {})
    return {
        "current_step": current.value if current else None,
        "completed_steps": [s.value for s in ordered_steps(completed)],
        "step_status": {step.value: status.value for step, status in statuses.items()},
    }


class WorkflowUseCase:
    """Builds the initial state from a request and drives the stepper."""

    def __init__(self, llm: LLMPort, github: GitHubPort, config: AppConfig, rag: RAGPort | None = None) -> None:
        self._llm = llm
        self._github = github
        self._config = config
        self._rag = rag

    def build_initial_state(self, request: WorkflowRequest) -> WorkflowState:
        defaults = self._config.workflow
        return {
            "selected_repos": request.repo_refs(),
            "selected_output_formats": request.output_formats or list(defaults.default_output_formats),
            "selected_section_types": request.section_types or list(defaults.default_section_types),
            "selected_language": request.language or defaults.default_language,
            "selected_model": request.model or defaults.default_model,
            "commit_changes": request.commit_changes,
            "commit_branch": request.commit_branch,
        }

    def _manager(self, request: WorkflowRequest, on_state_update=None, on_progress=None) -> AgentManager:
        return AgentManager(
            self.build_initial_state(request),
            on_state_update,
            on_progress,
            nodes=build_stage_registry(self._llm, self._github, self._config, self._rag),
            max_iterations=self._config.workflow.max_iterations,
        )

    async def execute(self, request: WorkflowRequest) -> WorkflowResponse:
        """Run workflow synchronously, return full result."""
        final = await self._manager(request).run()
        return state_to_response(final)

    async def execute_stream(self, request: WorkflowRequest) -> AsyncIterator[WorkflowStreamEvent]:
        """Run workflow, stream events via SSE."""
        queue: asyncio.Queue[WorkflowStreamEvent] = asyncio.Queue()

        def on_state_update(state: WorkflowState) -> None:
            queue.put_nowait(WorkflowStreamEvent(event_type=WorkflowEventType.STEP, payload=_step_payload(state)))

        def on_progress(progress: Progress) -> None:
            queue.put_nowait(WorkflowStreamEvent(event_type=WorkflowEventType.PROGRESS, payload=progress.model_dump()))

        manager = self._manager(request, on_state_update, on_progress)

        async def run_manager() -> None:
            try:
                final = await manager.run()
                queue.put_nowait(
                    WorkflowStreamEvent(
                        event_type=WorkflowEventType.DONE,
                        payload=state_to_response(final).model_dump(mode="json"),
                    )
                )
            except Exception as e:
                logger.exception("Workflow stream failed")
                queue.put_nowait(WorkflowStreamEvent(event_type=WorkflowEventType.ERROR, chunk=str(e)))

        task = asyncio.create_task(run_manager())
        try:
            while True:
                event = await queue.get()
                yield event
                if event.event_type in TERMINAL_EVENTS:
                    break
        finally:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
