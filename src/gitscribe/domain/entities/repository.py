"""Repository references and analysis results."""

import re
from typing import Literal

from pydantic import BaseModel, Field

Complexity = Literal["simple", "moderate", "complex"]

# owner/repo, github.com/owner/repo, https://github.com/owner/repo[/tree/branch]
_REFERENCE_PATTERNS = (
    re.compile(r"^https?://(?:www\.)?github\.com/([^/\s]+)/([^/\s]+?)(?:\.git)?(?:/tree/([^/\s]+))?/?$"),
    re.compile(r"^(?:www\.)?github\.com/([^/\s]+)/([^/\s]+?)(?:\.git)?(?:/tree/([^/\s]+))?/?$"),
    re.compile(r"^([^/\s:]+)/([^/\s]+)$"),
)


class RepoRef(BaseModel):
    """A GitHub repository selected for documentation."""

    id: int = 0
    name: str
    full_name: str
    owner: str
    private: bool = False
    html_url: str = ""
    default_branch: str = "main"
    ref: str | None = None  # branch pinned by a /tree/<branch> reference
    description: str | None = None
    language: str | None = None
    last_pushed_at: str | None = None

    @property
    def key(self) -> str:
        """Repository key (owner/name) used to join per-stage outputs."""
        return self.full_name

    @classmethod
    def from_reference(cls, reference: str) -> "RepoRef":
        """Build a minimal RepoRef from 'owner/repo' or a github.com URL."""
        text = reference.strip()
        for pattern in _REFERENCE_PATTERNS:
            match = pattern.match(text)
            if match:
                owner, name = match.group(1), match.group(2)
                branch = match.group(3) if match.lastindex and match.lastindex >= 3 else None
                return cls(
                    name=name,
                    full_name=f"{owner}/{name}",
                    owner=owner,
                    html_url=f"https://github.com/{owner}/{name}",
                    default_branch=branch or "main",
                    ref=branch,
                )
        raise ValueError(f"Not a GitHub repository reference: {reference!r}")


class RepoStructure(BaseModel):
    """Structural facts detected from the repository root."""

    languages: list[str] = Field(default_factory=list)
    frameworks: list[str] = Field(default_factory=list)
    has_readme: bool = False
    has_package_manifest: bool = False
    has_config_files: bool = False
    main_files: list[str] = Field(default_factory=list)


class RepoAnalysis(BaseModel):
    """Output of the analysis stage for one repository."""

    repo: RepoRef
    structure: RepoStructure = Field(default_factory=RepoStructure)
    summary: str = ""
    key_features: list[str] = Field(default_factory=list)
    tech_stack: list[str] = Field(default_factory=list)
    complexity: Complexity = "moderate"
