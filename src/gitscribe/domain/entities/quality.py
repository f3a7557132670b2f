"""Quality reports and folder refactor proposals."""

from pydantic import BaseModel, Field


class QualityMetric(BaseModel):
    """One weighted quality dimension, scored 0-100."""

    id: str
    label: str
    score: int
    weight: float
    description: str = ""


class QualityReport(BaseModel):
    """Weighted quality score for a repository."""

    repo_name: str
    overall_score: int
    metrics: list[QualityMetric] = Field(default_factory=list)


class FolderSuggestion(BaseModel):
    folder: str
    description: str = ""


class RefactorMove(BaseModel):
    from_path: str
    to_path: str
    reason: str = ""


class RefactorProposal(BaseModel):
    """Suggested folder layout changes for a repository."""

    repo_name: str
    high_level_summary: str
    recommended_structure: list[FolderSuggestion] = Field(default_factory=list)
    moves: list[RefactorMove] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
