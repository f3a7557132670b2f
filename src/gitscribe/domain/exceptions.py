"""Domain exceptions."""


class GitScribeError(Exception):
    """Base class for GitScribe errors."""


class WorkflowAbortedError(GitScribeError):
    """The workflow cannot start, e.g. the first stage has no input."""


class GitHubError(GitScribeError):
    """GitHub API request failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubAuthError(GitHubError):
    """Missing, invalid or under-privileged GitHub token."""
