"""Tests for the stage registry, readiness predicates and transition table."""

import copy
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import make_analysis, make_repo
from gitscribe.domain.entities.workflow_step import PIPELINE_ORDER, AgentStep
from gitscribe.domain.entities.documentation import DocOutputFormat, DocSectionType
from gitscribe.domain.ports.config import AppConfig
from gitscribe.infrastructure.workflow.graph import (
    AGENT_GRAPH,
    READINESS,
    GraphEdge,
    build_stage_registry,
    get_next_step,
)
from gitscribe.infrastructure.workflow.manager import run_agent_workflow

S = AgentStep

# Input field each stage reads.
INPUTS = {
    S.DISCOVERY: ("selected_repos", [make_repo("a/b")]),
    S.ANALYSIS: ("discovered_repos", [make_repo("a/b")]),
    S.QUALITY: ("repo_analyses", {"a/b": make_analysis("a/b")}),
    S.REFACTOR: ("repo_analyses", {"a/b": make_analysis("a/b")}),
    S.PLANNING: ("repo_analyses", {"a/b": make_analysis("a/b")}),
    S.WRITING: ("documentation_plans", {"a/b": object()}),
    S.GITOPS: ("generated_docs_full", {"a/b": object()}),
}


def _ready_state(step: AgentStep) -> dict:
    idx = PIPELINE_ORDER.index(step)
    field, value = INPUTS[step]
    return {"completed_steps": set(PIPELINE_ORDER[:idx]), field: value}


class TestReadiness:
    """Readiness predicate per stage."""

    @pytest.mark.parametrize("step", PIPELINE_ORDER)
    def test_ready_with_predecessor_and_input(self, step):
        assert READINESS[step](_ready_state(step)) is True

    @pytest.mark.parametrize("step", PIPELINE_ORDER[1:])
    def test_not_ready_without_predecessor(self, step):
        state = _ready_state(step)
        state["completed_steps"] = set(PIPELINE_ORDER) - {PIPELINE_ORDER[PIPELINE_ORDER.index(step) - 1], step}
        assert READINESS[step](state) is False

    @pytest.mark.parametrize("step", PIPELINE_ORDER)
    def test_not_ready_when_already_done(self, step):
        state = _ready_state(step)
        state["completed_steps"] = state["completed_steps"] | {step}
        assert READINESS[step](state) is False

    @pytest.mark.parametrize("step", PIPELINE_ORDER)
    def test_not_ready_with_empty_input(self, step):
        state = _ready_state(step)
        field, value = INPUTS[step]
        state[field] = type(value)()
        assert READINESS[step](state) is False

    def test_discovery_needs_no_predecessor(self):
        assert READINESS[S.DISCOVERY]({"selected_repos": [make_repo("a/b")]}) is True


class TestGetNextStep:
    """Tests for get_next_step."""

    def test_linear_chain(self):
        chain = [*PIPELINE_ORDER, S.COMPLETE]
        for current, expected in zip(chain, chain[1:]):
            assert get_next_step(current, {}) == expected

    def test_complete_has_no_edge(self):
        assert get_next_step(S.COMPLETE, {}) is None

    def test_guarded_edge_wins_when_true(self):
        edges = (
            GraphEdge(S.ANALYSIS, S.QUALITY),
            GraphEdge(S.ANALYSIS, S.PLANNING, condition=lambda state: state.get("skip_quality", False)),
        )
        assert get_next_step(S.ANALYSIS, {"skip_quality": True}, edges) == S.PLANNING
        assert get_next_step(S.ANALYSIS, {}, edges) == S.QUALITY

    def test_false_guard_without_fallback(self):
        edges = (GraphEdge(S.ANALYSIS, S.QUALITY, condition=lambda state: False),)
        assert get_next_step(S.ANALYSIS, {}, edges) is None

    def test_graph_has_one_edge_per_stage(self):
        assert [e.from_step for e in AGENT_GRAPH] == list(PIPELINE_ORDER)
        assert all(e.condition is None for e in AGENT_GRAPH)


def test_registry_covers_every_stage():
    registry = build_stage_registry(MagicMock(), MagicMock(), AppConfig())
    assert set(registry) == set(PIPELINE_ORDER)
    for step, node in registry.items():
        assert node.name == step
        assert node.should_run is READINESS[step]


class TestStagesLeaveInputUntouched:
    """Every stage returns a partial update and never mutates the state it is given."""

    @pytest.fixture
    def registry(self, mock_llm, fake_github):
        rag = MagicMock()
        rag.index_repository = AsyncMock(return_value=0)
        rag.search = AsyncMock(return_value=[])
        return build_stage_registry(mock_llm, fake_github, AppConfig(), rag=rag)

    @pytest.fixture
    async def full_state(self, registry):
        initial = {
            "selected_repos": [make_repo("acme/alpha"), make_repo("acme/beta")],
            "selected_output_formats": list(DocOutputFormat),
            "selected_section_types": [DocSectionType.README, DocSectionType.API],
            "commit_changes": True,
        }
        return await run_agent_workflow(initial, nodes=registry)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("step", PIPELINE_ORDER)
    async def test_input_state_unchanged(self, registry, full_state, step):
        snapshot = copy.deepcopy(full_state)

        update = await registry[step].execute(full_state, None)

        assert full_state == snapshot
        assert update is not full_state
        assert update["completed_steps"] == {step}
