"""Workflow state schema and merge rules."""

from collections.abc import Callable
from typing import TypedDict

from pydantic import BaseModel

from gitscribe.domain.entities.documentation import (
    CommitRecord,
    DocLanguage,
    DocOutputFormat,
    DocSectionType,
    DocumentationPlan,
    GeneratedDocs,
)
from gitscribe.domain.entities.quality import QualityReport, RefactorProposal
from gitscribe.domain.entities.repository import RepoAnalysis, RepoRef
from gitscribe.domain.entities.workflow_step import AgentStep


class Progress(BaseModel):
    """Progress of the running stage."""

    current: int
    total: int
    current_repo: str | None = None
    current_agent: str | None = None


ProgressReporter = Callable[[Progress], None]


class WorkflowState(TypedDict, total=False):
    """State threaded through every stage. Also used for partial updates."""

    # Input
    selected_repos: list[RepoRef]
    selected_output_formats: list[DocOutputFormat]
    selected_section_types: list[DocSectionType]
    selected_language: DocLanguage
    selected_model: str
    commit_changes: bool
    commit_branch: str | None

    # Stage outputs, keyed by repository key (owner/name)
    discovered_repos: list[RepoRef]
    repo_analyses: dict[str, RepoAnalysis]
    quality_reports: dict[str, QualityReport]
    badges: dict[str, str]
    refactor_proposals: dict[str, RefactorProposal]
    documentation_plans: dict[str, DocumentationPlan]
    generated_docs: dict[str, str]  # first markdown body per repo
    generated_docs_full: dict[str, GeneratedDocs]
    commits: dict[str, list[CommitRecord]]

    # Status
    current_step: AgentStep | None
    completed_steps: set[AgentStep]
    errors: dict[str, str]

    # Progress
    progress: Progress | None


def merge_state(state: WorkflowState, updates: WorkflowState) -> WorkflowState:
    """Shallow-merge updates onto state.

    completed_steps is unioned and errors is dict-unioned (later value wins);
    every other key is overwritten. Neither argument is mutated.
    """
    merged: WorkflowState = {**state, **updates}
    merged["completed_steps"] = set(state.get("completed_steps") or ()) | set(
        updates.get("completed_steps") or ()
    )
    merged["errors"] = {**(state.get("errors") or {}), **(updates.get("errors") or {})}
    return merged
