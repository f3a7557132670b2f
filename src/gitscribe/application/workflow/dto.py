"""Workflow DTOs."""

from pydantic import BaseModel, Field, field_validator

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
from gitscribe.domain.entities.workflow_events import WorkflowEventType
from gitscribe.domain.entities.workflow_step import AgentStep, StepStatus


class WorkflowRequest(BaseModel):
    """Request to document one or more repositories."""

    repos: list[str] = Field(default_factory=list, max_length=50)  # owner/repo or github.com URLs
    output_formats: list[DocOutputFormat] | None = None
    section_types: list[DocSectionType] | None = None
    language: DocLanguage | None = None
    model: str | None = Field(None, max_length=200)
    commit_changes: bool = False
    commit_branch: str | None = Field(None, max_length=255)

    @field_validator("repos")
    @classmethod
    def _check_references(cls, value: list[str]) -> list[str]:
        for reference in value:
            RepoRef.from_reference(reference)
        return value

    def repo_refs(self) -> list[RepoRef]:
        return [RepoRef.from_reference(r) for r in self.repos]


class WorkflowResponse(BaseModel):
    """Final pipeline state, trimmed for API consumers."""

    current_step: AgentStep | None = None
    completed_steps: list[AgentStep] = Field(default_factory=list)  # pipeline order
    step_status: dict[AgentStep, StepStatus] = Field(default_factory=dict)
    errors: dict[str, str] = Field(default_factory=dict)
    analyses: dict[str, RepoAnalysis] = Field(default_factory=dict)
    quality_reports: dict[str, QualityReport] = Field(default_factory=dict)
    badges: dict[str, str] = Field(default_factory=dict)
    refactor_proposals: dict[str, RefactorProposal] = Field(default_factory=dict)
    documentation_plans: dict[str, DocumentationPlan] = Field(default_factory=dict)
    generated_docs: dict[str, GeneratedDocs] = Field(default_factory=dict)
    commits: dict[str, list[CommitRecord]] = Field(default_factory=dict)


class WorkflowStreamEvent(BaseModel):
    """SSE event for streaming workflow progress."""

    event_type: WorkflowEventType
    chunk: str | None = None  # error message
    payload: dict | None = None
