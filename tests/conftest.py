"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from gitscribe.domain.entities.repository import RepoAnalysis, RepoRef, RepoStructure
from gitscribe.domain.exceptions import GitHubError
from gitscribe.domain.ports.github import CommitInfo, ContentItem
from gitscribe.domain.ports.llm import LLMResponse

LLM_TEXT = "Generated documentation body."


def make_repo(full_name: str, **fields) -> RepoRef:
    owner, name = full_name.split("/")
    return RepoRef(name=name, full_name=full_name, owner=owner, **fields)


def make_analysis(full_name: str, **fields) -> RepoAnalysis:
    fields.setdefault("summary", f"{full_name} does useful things")
    fields.setdefault("key_features", ["Fast", "Small"])
    fields.setdefault("tech_stack", ["Python", "FastAPI"])
    return RepoAnalysis(
        repo=make_repo(full_name),
        structure=RepoStructure(languages=["Python"], frameworks=["FastAPI"], main_files=["app.py", "setup.py"]),
        **fields,
    )


def _file(path: str, size: int = 100) -> ContentItem:
    return ContentItem(name=path.rsplit("/", 1)[-1], path=path, type="file", size=size)


def _dir(path: str) -> ContentItem:
    return ContentItem(name=path.rsplit("/", 1)[-1], path=path, type="dir")


DEFAULT_TREE: dict[str, list[ContentItem]] = {
    "": [
        _file("README.md", 2500),
        _file("LICENSE"),
        _file("pyproject.toml"),
        _file("app.py"),
        _dir("src"),
        _dir("tests"),
    ],
    "src": [_file("src/main.py")],
    "tests": [_file("tests/test_main.py")],
}


class FakeGitHub:
    """In-memory GitHubPort. Every repository shares DEFAULT_TREE unless overridden."""

    def __init__(self, authenticated: bool = True) -> None:
        self.authenticated = authenticated
        self.user_repos: list[RepoRef] = []
        self.trees: dict[str, dict[str, list[ContentItem]]] = {}
        self.files: dict[str, str] = {
            "README.md": "# Demo\n\nA demo project.",
            "pyproject.toml": '[project]\nname = "demo"\ndependencies = ["fastapi>=0.100", "httpx"]\n',
        }
        self.failing_repos: set[str] = set()
        self.failing_paths: set[str] = set()
        self.commits: list[dict] = []
        self.repo_metadata: dict[str, RepoRef] = {}
        self.missing_repos: set[str] = set()

    @property
    def is_authenticated(self) -> bool:
        return self.authenticated

    async def list_user_repos(self, visibility="all", per_page=100, page=1):
        return list(self.user_repos)

    async def get_repo(self, owner, repo):
        key = f"{owner}/{repo}"
        if key in self.missing_repos:
            return None
        return self.repo_metadata.get(key) or make_repo(key)

    async def list_contents(self, owner, repo, path="", branch="main"):
        key = f"{owner}/{repo}"
        if key in self.failing_repos:
            raise GitHubError(f"listing {key} failed", 500)
        return list(self.trees.get(key, DEFAULT_TREE).get(path, []))

    async def fetch_file(self, owner, repo, path, branch="main"):
        return self.files.get(path)

    async def create_or_update_file(self, owner, repo, path, content, message, branch="main"):
        if path in self.failing_paths:
            raise GitHubError(f"commit {path} failed", 409)
        self.commits.append(
            {"repo": f"{owner}/{repo}", "path": path, "content": content, "message": message, "branch": branch}
        )
        sha = f"{len(self.commits):040d}"
        return CommitInfo(sha=sha, html_url=f"https://github.com/{owner}/{repo}/commit/{sha}")


@pytest.fixture
def mock_llm():
    """Mock LLM returning plain text, so JSON-expecting stages use their fallbacks."""
    llm = MagicMock()
    llm.generate = AsyncMock(return_value=LLMResponse(content=LLM_TEXT, model="test-model"))
    llm.is_available = AsyncMock(return_value=True)
    return llm


@pytest.fixture
def fake_github():
    return FakeGitHub()


@pytest.fixture
def three_repos():
    return [make_repo("acme/alpha"), make_repo("acme/beta"), make_repo("acme/gamma")]
