"""RepoDiscovery agent - resolves selected repositories or lists the user's own."""

import logging

from gitscribe.domain.entities.repository import RepoRef
from gitscribe.domain.entities.workflow_state import Progress, ProgressReporter, WorkflowState
from gitscribe.domain.entities.workflow_step import AgentStep
from gitscribe.domain.ports.github import GitHubPort
from gitscribe.domain.services.error_keys import error_key

logger = logging.getLogger(__name__)

AGENT_NAME = "RepoDiscovery"


async def resolve_repository(github: GitHubPort, selected: RepoRef) -> RepoRef | None:
    """Selected reference filled with GitHub metadata. None when the repository does not exist.

    A branch pinned by the reference (``/tree/<branch>``) wins over the default branch.
    """
    resolved = await github.get_repo(selected.owner, selected.name)
    if resolved is None:
        return None
    if selected.ref:
        resolved = resolved.model_copy(update={"default_branch": selected.ref, "ref": selected.ref})
    return resolved


async def repo_discovery_node(
    state: WorkflowState,
    github: GitHubPort,
    report_progress: ProgressReporter | None = None,
) -> WorkflowState:
    """Fill discovered_repos. Always marks DISCOVERY complete."""
    updates: WorkflowState = {
        "current_step": AgentStep.DISCOVERY,
        "completed_steps": {AgentStep.DISCOVERY},
        "discovered_repos": [],
    }
    selected = state.get("selected_repos") or []
    errors: dict[str, str] = {}

    if selected:
        valid = [r for r in selected if r.full_name and r.owner and r.name]
        discovered: list[RepoRef] = []
        for idx, repo in enumerate(valid, start=1):
            if report_progress:
                report_progress(
                    Progress(current=idx, total=len(valid), current_repo=repo.key, current_agent=AGENT_NAME)
                )
            try:
                resolved = await resolve_repository(github, repo)
            except Exception as e:
                logger.error("Failed to look up %s: %s", repo.key, e)
                errors[error_key(AgentStep.DISCOVERY, repo.key)] = str(e) or "Repository lookup failed"
                continue
            if resolved is None:
                errors[error_key(AgentStep.DISCOVERY, repo.key)] = "Repository not found"
                continue
            discovered.append(resolved)

        if discovered:
            logger.info("Resolved %d of %d selected repositories", len(discovered), len(selected))
            updates["discovered_repos"] = discovered
        else:
            logger.warning("No valid repositories after validation")
            errors[error_key(AgentStep.DISCOVERY)] = "No valid repositories found"
    else:
        try:
            repos = await github.list_user_repos(per_page=100)
        except Exception as e:
            logger.error("Failed to list user repositories: %s", e)
            errors[error_key(AgentStep.DISCOVERY)] = str(e) or "Failed to discover repositories"
        else:
            if repos:
                logger.info("Discovered %d user repositories", len(repos))
                updates["discovered_repos"] = repos
            else:
                errors[error_key(AgentStep.DISCOVERY)] = "No repositories found"

    updates["progress"] = Progress(current=1, total=1, current_agent=AGENT_NAME)
    if errors:
        updates["errors"] = errors
    return updates
