"""GitHub Port - the narrow slice of the GitHub API the pipeline consumes."""

from typing import Literal, Protocol

from pydantic import BaseModel

from gitscribe.domain.entities.repository import RepoRef


class ContentItem(BaseModel):
    """Entry of a repository directory listing."""

    name: str
    path: str
    type: Literal["file", "dir"]
    size: int | None = None


class CommitInfo(BaseModel):
    """Commit created by a file write."""

    sha: str
    html_url: str | None = None


class GitHubPort(Protocol):
    """Interface for GitHub access (REST adapter, fakes in tests)."""

    @property
    def is_authenticated(self) -> bool:
        """True when a token is configured."""
        ...

    async def list_user_repos(
        self,
        visibility: Literal["all", "public", "private"] = "all",
        per_page: int = 100,
        page: int = 1,
    ) -> list[RepoRef]:
        """List repositories of the authenticated user."""
        ...

    async def get_repo(self, owner: str, repo: str) -> RepoRef | None:
        """Repository metadata, including the real default branch. Missing repositories yield None."""
        ...

    async def list_contents(
        self,
        owner: str,
        repo: str,
        path: str = "",
        branch: str = "main",
    ) -> list[ContentItem]:
        """List a directory. Missing paths yield an empty list."""
        ...

    async def fetch_file(
        self,
        owner: str,
        repo: str,
        path: str,
        branch: str = "main",
    ) -> str | None:
        """Fetch a text file. Missing files yield None."""
        ...

    async def create_or_update_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        branch: str = "main",
    ) -> CommitInfo:
        """Create or overwrite a file with a commit."""
        ...
