"""Stage registry and transition table - discovery → analysis → quality → refactor → planning → writing → gitops."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from gitscribe.domain.entities.workflow_state import ProgressReporter, WorkflowState
from gitscribe.domain.entities.workflow_step import AgentStep
from gitscribe.domain.ports.config import AppConfig
from gitscribe.domain.ports.github import GitHubPort
from gitscribe.domain.ports.llm import LLMPort
from gitscribe.domain.ports.rag import RAGPort
from gitscribe.infrastructure.agents.docs_planner import docs_planner_node
from gitscribe.infrastructure.agents.docs_writer import docs_writer_node
from gitscribe.infrastructure.agents.git_ops import git_ops_node
from gitscribe.infrastructure.agents.quality_analyzer import quality_analyzer_node
from gitscribe.infrastructure.agents.refactor_proposal import refactor_proposal_node
from gitscribe.infrastructure.agents.repo_analysis import repo_analysis_node
from gitscribe.infrastructure.agents.repo_discovery import repo_discovery_node

StageExecutor = Callable[[WorkflowState, ProgressReporter | None], Awaitable[WorkflowState]]
Readiness = Callable[[WorkflowState], bool]


@dataclass(frozen=True)
class StageNode:
    """A stage: its executor and readiness predicate."""

    name: AgentStep
    execute: StageExecutor
    should_run: Readiness


@dataclass(frozen=True)
class GraphEdge:
    """Transition from one stage to the next, optionally guarded."""

    from_step: AgentStep
    to_step: AgentStep
    condition: Readiness | None = None


AGENT_GRAPH: tuple[GraphEdge, ...] = (
    GraphEdge(AgentStep.DISCOVERY, AgentStep.ANALYSIS),
    GraphEdge(AgentStep.ANALYSIS, AgentStep.QUALITY),
    GraphEdge(AgentStep.QUALITY, AgentStep.REFACTOR),
    GraphEdge(AgentStep.REFACTOR, AgentStep.PLANNING),
    GraphEdge(AgentStep.PLANNING, AgentStep.WRITING),
    GraphEdge(AgentStep.WRITING, AgentStep.GITOPS),
    GraphEdge(AgentStep.GITOPS, AgentStep.COMPLETE),
)


def _done(state: WorkflowState, step: AgentStep) -> bool:
    return step in (state.get("completed_steps") or set())


def _gate(prev: AgentStep | None, own: AgentStep, field: str) -> Readiness:
    def should_run(state: WorkflowState) -> bool:
        if prev is not None and not _done(state, prev):
            return False
        return not _done(state, own) and bool(state.get(field))

    should_run.__name__ = f"{own.value}_should_run"
    return should_run


READINESS: dict[AgentStep, Readiness] = {
    AgentStep.DISCOVERY: _gate(None, AgentStep.DISCOVERY, "selected_repos"),
    AgentStep.ANALYSIS: _gate(AgentStep.DISCOVERY, AgentStep.ANALYSIS, "discovered_repos"),
    AgentStep.QUALITY: _gate(AgentStep.ANALYSIS, AgentStep.QUALITY, "repo_analyses"),
    AgentStep.REFACTOR: _gate(AgentStep.QUALITY, AgentStep.REFACTOR, "repo_analyses"),
    AgentStep.PLANNING: _gate(AgentStep.REFACTOR, AgentStep.PLANNING, "repo_analyses"),
    AgentStep.WRITING: _gate(AgentStep.PLANNING, AgentStep.WRITING, "documentation_plans"),
    AgentStep.GITOPS: _gate(AgentStep.WRITING, AgentStep.GITOPS, "generated_docs_full"),
}


def get_next_step(
    step: AgentStep,
    state: WorkflowState,
    edges: tuple[GraphEdge, ...] | list[GraphEdge] = AGENT_GRAPH,
) -> AgentStep | None:
    """Guarded edge whose condition holds, else the unguarded edge, else None."""
    outgoing = [e for e in edges if e.from_step == step]
    for edge in outgoing:
        if edge.condition is not None and edge.condition(state):
            return edge.to_step
    for edge in outgoing:
        if edge.condition is None:
            return edge.to_step
    return None


def build_stage_registry(
    llm: LLMPort,
    github: GitHubPort,
    config: AppConfig,
    rag: RAGPort | None = None,
) -> dict[AgentStep, StageNode]:
    """Bind collaborators into each stage executor. Without a RAG store, no code is indexed or retrieved."""
    model = config.workflow.default_model

    async def discovery(state: WorkflowState, report: ProgressReporter | None = None) -> WorkflowState:
        return await repo_discovery_node(state, github, report)

    async def analysis(state: WorkflowState, report: ProgressReporter | None = None) -> WorkflowState:
        return await repo_analysis_node(state, llm, github, model, report, rag=rag, rag_config=config.rag)

    async def quality(state: WorkflowState, report: ProgressReporter | None = None) -> WorkflowState:
        return await quality_analyzer_node(state, github, report)

    async def refactor(state: WorkflowState, report: ProgressReporter | None = None) -> WorkflowState:
        return await refactor_proposal_node(state, llm, github, model, report)

    async def planning(state: WorkflowState, report: ProgressReporter | None = None) -> WorkflowState:
        return await docs_planner_node(state, llm, model, report)

    async def writing(state: WorkflowState, report: ProgressReporter | None = None) -> WorkflowState:
        return await docs_writer_node(
            state, llm, model, report, defaults=config.workflow, rag=rag, rag_config=config.rag
        )

    async def gitops(state: WorkflowState, report: ProgressReporter | None = None) -> WorkflowState:
        return await git_ops_node(state, github, report)

    executors: dict[AgentStep, StageExecutor] = {
        AgentStep.DISCOVERY: discovery,
        AgentStep.ANALYSIS: analysis,
        AgentStep.QUALITY: quality,
        AgentStep.REFACTOR: refactor,
        AgentStep.PLANNING: planning,
        AgentStep.WRITING: writing,
        AgentStep.GITOPS: gitops,
    }
    return {
        step: StageNode(name=step, execute=execute, should_run=READINESS[step])
        for step, execute in executors.items()
    }
