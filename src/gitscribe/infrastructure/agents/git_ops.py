"""GitOps agent - commits generated documentation back to GitHub."""

import logging

from gitscribe.domain.entities.documentation import CommitRecord, DocOutputFormat, DocSection
from gitscribe.domain.entities.repository import RepoRef
from gitscribe.domain.entities.workflow_state import Progress, ProgressReporter, WorkflowState
from gitscribe.domain.entities.workflow_step import AgentStep
from gitscribe.domain.ports.github import GitHubPort
from gitscribe.domain.services.error_keys import error_key

logger = logging.getLogger(__name__)

AGENT_NAME = "GitOps"


def commit_path(section: DocSection) -> str:
    """Repository path a section is committed to."""
    name = section.type.value.lower()
    if section.format == DocOutputFormat.OPENAPI:
        return f"docs/api/{name}.openapi.yaml"
    if section.format == DocOutputFormat.MDX:
        return f"docs/{name}.mdx"
    if section.format == DocOutputFormat.HTML:
        return f"docs/{name}.html"
    if section.format == DocOutputFormat.MARKDOWN_MERMAID:
        return f"docs/{name}.mermaid.md"
    return f"docs/{name}.md"


def commit_message(section: DocSection) -> str:
    return f"docs: Auto-generated {section.type.value} ({section.format.value}) documentation"


def _resolve_repo(key: str, state: WorkflowState) -> RepoRef:
    for repo in state.get("discovered_repos") or []:
        if repo.key == key:
            return repo
    return RepoRef.from_reference(key)


async def git_ops_node(
    state: WorkflowState,
    github: GitHubPort,
    report_progress: ProgressReporter | None = None,
) -> WorkflowState:
    """Commit every generated section. Updates state['commits']."""
    updates: WorkflowState = {
        "current_step": AgentStep.GITOPS,
        "completed_steps": {AgentStep.GITOPS},
        "commits": {},
    }
    if not state.get("commit_changes"):
        logger.info("Commit not requested, skipping Git operations")
        return updates

    generated = state.get("generated_docs_full") or {}
    if not generated:
        updates["errors"] = {error_key(AgentStep.GITOPS): "No generated documentation to commit"}
        return updates
    if not github.is_authenticated:
        updates["errors"] = {error_key(AgentStep.GITOPS): "GitHub token required for Git operations"}
        return updates

    commits: dict[str, list[CommitRecord]] = {}
    errors: dict[str, str] = {}
    total = len(generated)
    for idx, (key, docs) in enumerate(generated.items(), start=1):
        if report_progress:
            report_progress(Progress(current=idx, total=total, current_repo=key, current_agent=AGENT_NAME))
        try:
            repo = _resolve_repo(key, state)
        except ValueError as e:
            errors[error_key(AgentStep.GITOPS, key)] = str(e)
            continue
        branch = state.get("commit_branch") or repo.default_branch
        records: list[CommitRecord] = []
        for section in docs.sections:
            content = section.content
            if not content:
                continue
            path = commit_path(section)
            try:
                info = await github.create_or_update_file(
                    repo.owner, repo.name, path, content, commit_message(section), branch
                )
            except Exception as e:
                logger.error("Failed to commit %s for %s: %s", path, key, e)
                errors[error_key(AgentStep.GITOPS, key, path)] = str(e) or "Failed to commit file"
                continue
            records.append(CommitRecord(path=path, sha=info.sha, url=info.html_url))
            logger.info("Committed %s for %s (%s)", path, key, info.sha[:7])
        if records:
            commits[key] = records

    updates["commits"] = commits
    updates["progress"] = Progress(current=total, total=total, current_agent=AGENT_NAME)
    if errors:
        updates["errors"] = errors
    return updates
