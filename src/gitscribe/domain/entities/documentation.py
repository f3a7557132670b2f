"""Documentation plans, generated sections and commit records."""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field

from gitscribe.domain.entities.repository import RepoRef

PlannedSectionType = Literal["overview", "features", "setup", "api", "architecture", "examples"]
PlanStyle = Literal["technical", "user-friendly", "comprehensive"]


class DocOutputFormat(str, Enum):
    """Output formats the writer can render."""

    MARKDOWN = "markdown"
    MARKDOWN_MERMAID = "markdown_mermaid"
    MDX = "mdx"
    OPENAPI = "openapi"
    HTML = "html"


class DocSectionType(str, Enum):
    """Kinds of documents a user can request."""

    README = "README"
    ARCHITECTURE = "ARCHITECTURE"
    API = "API"
    COMPONENTS = "COMPONENTS"
    TESTING_CI = "TESTING_CI"
    CHANGELOG = "CHANGELOG"
    INLINE_CODE = "INLINE_CODE"


class DocLanguage(str, Enum):
    """Natural languages supported for generated text."""

    EN = "en"
    FR = "fr"
    DE = "de"


LANGUAGE_NAMES: dict[DocLanguage, str] = {
    DocLanguage.EN: "English",
    DocLanguage.FR: "French",
    DocLanguage.DE: "German",
}

SECTION_TITLES: dict[DocSectionType, str] = {
    DocSectionType.README: "README",
    DocSectionType.ARCHITECTURE: "Architecture",
    DocSectionType.API: "API Reference",
    DocSectionType.COMPONENTS: "Components",
    DocSectionType.TESTING_CI: "Testing & CI/CD",
    DocSectionType.CHANGELOG: "Changelog",
    DocSectionType.INLINE_CODE: "Inline Code Documentation",
}


class PlannedSection(BaseModel):
    """One section in a documentation plan."""

    title: str
    type: PlannedSectionType = "overview"
    priority: int = 5
    estimated_tokens: int = 500


class DocumentationPlan(BaseModel):
    """Planner output for one repository."""

    repo: RepoRef
    sections: list[PlannedSection] = Field(default_factory=list)
    estimated_length: int = 5000
    focus_areas: list[str] = Field(default_factory=list)
    style: PlanStyle = "comprehensive"


class DocSection(BaseModel):
    """A rendered document: one section type in one output format."""

    id: str
    type: DocSectionType
    format: DocOutputFormat
    language: DocLanguage = DocLanguage.EN
    title: str
    markdown: str | None = None
    openapi_yaml: str | None = None
    html: str | None = None

    @property
    def content(self) -> str:
        """Whichever body this section carries."""
        return self.markdown or self.html or self.openapi_yaml or ""


class GeneratedDocs(BaseModel):
    """All rendered sections for one repository."""

    repo_name: str
    owner: str
    sections: list[DocSection] = Field(default_factory=list)
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class CommitRecord(BaseModel):
    """A documentation file committed back to GitHub."""

    path: str
    sha: str
    url: str | None = None
