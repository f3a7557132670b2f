"""GitHub REST adapter - implements GitHubPort over api.github.com."""

import base64
import logging
from typing import Literal

import httpx

from gitscribe.domain.exceptions import GitHubAuthError, GitHubError
from gitscribe.domain.entities.repository import RepoRef
from gitscribe.domain.ports.config import GitHubConfig
from gitscribe.domain.ports.github import CommitInfo, ContentItem

logger = logging.getLogger(__name__)

API_VERSION = "2022-11-28"


def _repo_from_json(item: dict) -> RepoRef:
    """RepoRef from a /repos or /user/repos item."""
    return RepoRef(
        id=item.get("id", 0),
        name=item["name"],
        full_name=item["full_name"],
        owner=(item.get("owner") or {}).get("login", item["full_name"].split("/")[0]),
        private=bool(item.get("private")),
        html_url=item.get("html_url", ""),
        default_branch=item.get("default_branch") or "main",
        description=item.get("description"),
        language=item.get("language"),
        last_pushed_at=item.get("pushed_at"),
    )


class GitHubRestAdapter:
    """Contents, repository listing and file commits through the REST API."""

    def __init__(self, config: GitHubConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._config = config
        self._base_url = config.api_url.rstrip("/")
        self._headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": API_VERSION,
        }
        if config.token:
            self._headers["Authorization"] = f"Bearer {config.token}"
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self._config.token)

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create persistent async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._config.timeout,
                headers=self._headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client (call during app shutdown)."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    def _raise_for_status(self, resp: httpx.Response, action: str) -> None:
        if resp.status_code < 400:
            return
        detail = resp.text[:300]
        logger.error("GitHub %s failed (%s): %s", action, resp.status_code, detail)
        if resp.status_code in (401, 403):
            raise GitHubAuthError(f"GitHub {action} not authorized: {detail}", resp.status_code)
        raise GitHubError(f"GitHub {action} failed with {resp.status_code}: {detail}", resp.status_code)

    async def list_user_repos(
        self,
        visibility: Literal["all", "public", "private"] = "all",
        per_page: int = 100,
        page: int = 1,
    ) -> list[RepoRef]:
        if not self.is_authenticated:
            raise GitHubAuthError("GitHub token required to list user repositories")
        resp = await self._get_client().get(
            "/user/repos",
            params={"visibility": visibility, "per_page": per_page, "page": page, "sort": "pushed"},
        )
        self._raise_for_status(resp, "list repositories")
        return [_repo_from_json(item) for item in resp.json()]

    async def get_repo(self, owner: str, repo: str) -> RepoRef | None:
        resp = await self._get_client().get(f"/repos/{owner}/{repo}")
        if resp.status_code == 404:
            logger.warning("Repository %s/%s not found", owner, repo)
            return None
        self._raise_for_status(resp, f"get {owner}/{repo}")
        return _repo_from_json(resp.json())
    async def list_contents(
        self,
        owner: str,
        repo: str,
        path: str = "",
        branch: str = "main",
    ) -> list[ContentItem]:
        resp = await self._get_client().get(f"/repos/{owner}/{repo}/contents/{path}", params={"ref": branch})
        if resp.status_code == 404:
            return []
        self._raise_for_status(resp, f"list {owner}/{repo}/{path}")
        data = resp.json()
        if not isinstance(data, list):
            return []
        return [
            ContentItem(name=item["name"], path=item["path"], type=item["type"], size=item.get("size"))
            for item in data
            if item.get("type") in ("file", "dir")
        ]

    async def _get_file(self, owner: str, repo: str, path: str, branch: str) -> dict | None:
        resp = await self._get_client().get(f"/repos/{owner}/{repo}/contents/{path}", params={"ref": branch})
        if resp.status_code == 404:
            return None
        self._raise_for_status(resp, f"fetch {owner}/{repo}/{path}")
        data = resp.json()
        return data if isinstance(data, dict) and data.get("type") == "file" else None

    async def fetch_file(
        self,
        owner: str,
        repo: str,
        path: str,
        branch: str = "main",
    ) -> str | None:
        data = await self._get_file(owner, repo, path, branch)
        if data is None or not data.get("content"):
            return None
        return base64.b64decode(data["content"]).decode("utf-8", errors="replace")

    async def create_or_update_file(
        self,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        branch: str = "main",
    ) -> CommitInfo:
        if not self.is_authenticated:
            raise GitHubAuthError("GitHub token required to commit files")
        existing = await self._get_file(owner, repo, path, branch)
        body: dict = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
            "branch": branch,
        }
        if existing and existing.get("sha"):
            body["sha"] = existing["sha"]
        resp = await self._get_client().put(f"/repos/{owner}/{repo}/contents/{path}", json=body)
        self._raise_for_status(resp, f"commit {owner}/{repo}/{path}")
        commit = resp.json().get("commit") or {}
        return CommitInfo(sha=commit.get("sha", ""), html_url=commit.get("html_url"))
