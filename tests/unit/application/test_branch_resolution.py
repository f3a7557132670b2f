"""Repositories on a non-main default branch, end to end over the REST adapter."""

import base64

import httpx
import pytest

from gitscribe.application.workflow.dto import WorkflowRequest
from gitscribe.application.workflow.use_case import WorkflowUseCase
from gitscribe.domain.ports.config import AppConfig, GitHubConfig
from gitscribe.infrastructure.github.rest_client import GitHubRestAdapter

CONTENTS_PREFIX = "/repos/acme/legacy/contents/"

LEGACY_REPO = {
    "id": 31,
    "name": "legacy",
    "full_name": "acme/legacy",
    "owner": {"login": "acme"},
    "private": False,
    "html_url": "https://github.com/acme/legacy",
    "default_branch": "master",
    "description": "Legacy service",
    "language": "Python",
}

ROOT_LISTING = [
    {"name": "README.md", "path": "README.md", "type": "file", "size": 1800},
    {"name": "app.py", "path": "app.py", "type": "file", "size": 300},
    {"name": "tests", "path": "tests", "type": "dir"},
]


class LegacyGitHub:
    """GitHub API stub: acme/legacy lives on master; acme/typo does not exist."""

    def __init__(self) -> None:
        self.refs: set[str] = set()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/repos/acme/legacy":
            return httpx.Response(200, json=LEGACY_REPO)
        if not path.startswith(CONTENTS_PREFIX):
            return httpx.Response(404, json={"message": "Not Found"})
        ref = request.url.params.get("ref")
        self.refs.add(ref)
        if ref != "master":
            return httpx.Response(404, json={"message": "No commit found for the ref"})
        file_path = path[len(CONTENTS_PREFIX):]
        if file_path == "":
            return httpx.Response(200, json=ROOT_LISTING)
        if file_path == "README.md":
            body = base64.b64encode(b"# Legacy\n\nStill running.").decode()
            return httpx.Response(200, json={"type": "file", "content": body, "sha": "r1"})
        return httpx.Response(404, json={"message": "Not Found"})


@pytest.fixture
def api():
    return LegacyGitHub()


@pytest.fixture
async def github(api):
    adapter = GitHubRestAdapter(
        GitHubConfig(api_url="https://api.github.test"), transport=httpx.MockTransport(api)
    )
    yield adapter
    await adapter.close()


@pytest.mark.asyncio
async def test_contents_are_read_from_the_default_branch(mock_llm, github, api):
    response = await WorkflowUseCase(mock_llm, github, AppConfig()).execute(WorkflowRequest(repos=["acme/legacy"]))

    analysis = response.analyses["acme/legacy"]
    assert analysis.repo.default_branch == "master"
    assert analysis.structure.has_readme is True
    assert analysis.structure.languages == ["Python"]
    assert "app.py" in analysis.structure.main_files
    assert api.refs == {"master"}
    assert response.errors == {}


@pytest.mark.asyncio
async def test_unknown_repository_is_reported(mock_llm, github):
    response = await WorkflowUseCase(mock_llm, github, AppConfig()).execute(
        WorkflowRequest(repos=["acme/legacy", "acme/typo"])
    )

    assert response.errors == {"discovery_acme/typo": "Repository not found"}
    assert set(response.analyses) == {"acme/legacy"}
