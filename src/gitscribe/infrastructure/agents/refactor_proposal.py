"""RefactorProposal agent - folder structure proposals per analyzed repository."""

import json
import logging
from typing import Any

from gitscribe.domain.entities.quality import FolderSuggestion, RefactorMove, RefactorProposal
from gitscribe.domain.entities.repository import RepoAnalysis, RepoRef
from gitscribe.domain.entities.workflow_state import Progress, ProgressReporter, WorkflowState
from gitscribe.domain.entities.workflow_step import AgentStep
from gitscribe.domain.ports.github import ContentItem, GitHubPort
from gitscribe.domain.ports.llm import LLMPort
from gitscribe.domain.services.error_keys import error_key
from gitscribe.domain.services.refactor_rules import MAX_MOVES, propose_structure
from gitscribe.infrastructure.agents.llm_helpers import complete, parse_json_response

logger = logging.getLogger(__name__)

AGENT_NAME = "RefactorProposal"
MAX_DEPTH = 3

SYSTEM_PROMPT = (
    "You are an expert software architect specializing in repository structure and code organization. "
    "Generate practical, actionable refactoring proposals that improve maintainability without breaking functionality."
)


async def _walk(
    github: GitHubPort,
    repo: RepoRef,
    items: list[ContentItem],
    depth: int,
) -> list[dict[str, Any]]:
    tree: list[dict[str, Any]] = []
    for item in items:
        node: dict[str, Any] = {"path": item.path, "type": item.type, "size": item.size}
        if item.type == "dir" and depth < MAX_DEPTH:
            try:
                children = await github.list_contents(repo.owner, repo.name, item.path, repo.default_branch)
            except Exception as e:
                logger.debug("Error listing %s in %s: %s", item.path, repo.key, e)
                children = []
            node["children"] = await _walk(github, repo, children, depth + 1)
        tree.append(node)
    return tree


def _build_prompt(repo: RepoRef, tree: list[dict[str, Any]], analysis: RepoAnalysis) -> str:
    return (
        "Analyze this GitHub repository structure and generate a refactor proposal.\n\n"
        f"Repository: {repo.full_name}\n"
        f"Summary: {analysis.summary}\n"
        f"Tech stack: {', '.join(analysis.tech_stack) or 'Unknown'}\n\n"
        f"Current Structure:\n{json.dumps(tree, indent=2)[:6000]}\n\n"
        "Return a JSON object:\n"
        '{"highLevelSummary": "...", '
        '"recommendedStructure": [{"folder": "src/components", "description": "..."}], '
        '"moves": [{"fromPath": "old/file.js", "toPath": "new/file.js", "reason": "..."}], '
        '"warnings": ["..."]}\n'
        f"Limit to {MAX_MOVES} moves maximum."
    )


def proposal_from_json(repo_name: str, data: dict[str, Any]) -> RefactorProposal:
    """Build a proposal from LLM JSON, ignoring malformed entries."""
    structure = [
        FolderSuggestion(folder=str(s["folder"]), description=str(s.get("description", "")))
        for s in data.get("recommendedStructure") or []
        if isinstance(s, dict) and s.get("folder")
    ]
    moves = [
        RefactorMove(from_path=str(m["fromPath"]), to_path=str(m["toPath"]), reason=str(m.get("reason", "")))
        for m in data.get("moves") or []
        if isinstance(m, dict) and m.get("fromPath") and m.get("toPath")
    ]
    warnings = data.get("warnings")
    return RefactorProposal(
        repo_name=repo_name,
        high_level_summary=str(data.get("highLevelSummary") or "Repository structure refactoring proposal"),
        recommended_structure=structure,
        moves=moves[:MAX_MOVES],
        warnings=[str(w) for w in warnings] if isinstance(warnings, list) else [],
    )


async def propose_refactor(
    analysis: RepoAnalysis,
    llm: LLMPort,
    github: GitHubPort,
    model: str,
) -> RefactorProposal:
    """Proposal for one repository. Root listing failures propagate."""
    repo = analysis.repo
    root = await github.list_contents(repo.owner, repo.name, "", repo.default_branch)
    tree = await _walk(github, repo, root, 1)

    try:
        response = await complete(llm, _build_prompt(repo, tree, analysis), SYSTEM_PROMPT, model, 0.7)
    except Exception as e:
        logger.warning("LLM proposal failed for %s, using rules: %s", repo.key, e)
        return propose_structure(repo.key, root)

    data = parse_json_response(response)
    if data is None:
        logger.warning("Unparsable proposal for %s, using rules", repo.key)
        return propose_structure(repo.key, root)
    return proposal_from_json(repo.key, data)


async def refactor_proposal_node(
    state: WorkflowState,
    llm: LLMPort,
    github: GitHubPort,
    model: str,
    report_progress: ProgressReporter | None = None,
) -> WorkflowState:
    """Generate proposals for every analyzed repository. Updates state['refactor_proposals']."""
    analyses = state.get("repo_analyses") or {}
    model = state.get("selected_model") or model
    updates: WorkflowState = {
        "current_step": AgentStep.REFACTOR,
        "completed_steps": {AgentStep.REFACTOR},
        "refactor_proposals": {},
    }
    if not analyses:
        logger.warning("No repository analyses available, skipping")
        return updates

    proposals: dict[str, RefactorProposal] = {}
    errors: dict[str, str] = {}
    total = len(analyses)
    for idx, (key, analysis) in enumerate(analyses.items(), start=1):
        if report_progress:
            report_progress(Progress(current=idx, total=total, current_repo=key, current_agent=AGENT_NAME))
        try:
            proposal = await propose_refactor(analysis, llm, github, model)
            proposals[key] = proposal
            logger.info("Generated %d moves for %s", len(proposal.moves), key)
        except Exception as e:
            logger.error("Error generating proposal for %s: %s", key, e)
            errors[error_key(AgentStep.REFACTOR, key)] = str(e) or "Refactor proposal generation failed"

    updates["refactor_proposals"] = proposals
    updates["progress"] = Progress(current=total, total=total, current_agent=AGENT_NAME)
    if errors:
        updates["errors"] = errors
    return updates
