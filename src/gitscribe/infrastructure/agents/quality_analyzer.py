"""QualityAnalyzer agent - weighted quality score and badges per analyzed repository."""

import logging

from gitscribe.domain.entities.quality import QualityReport
from gitscribe.domain.entities.repository import RepoAnalysis
from gitscribe.domain.entities.workflow_state import Progress, ProgressReporter, WorkflowState
from gitscribe.domain.entities.workflow_step import AgentStep
from gitscribe.domain.ports.github import GitHubPort
from gitscribe.domain.services.badge_generator import generate_badges
from gitscribe.domain.services.error_keys import error_key
from gitscribe.domain.services.quality_scoring import TEST_DIR_NAMES, score_repository

logger = logging.getLogger(__name__)

AGENT_NAME = "QualityAnalyzer"


async def assess_repository(analysis: RepoAnalysis, github: GitHubPort) -> QualityReport:
    """Score one repository. Root listing failures propagate; test dir failures do not."""
    repo = analysis.repo
    root = await github.list_contents(repo.owner, repo.name, "", repo.default_branch)

    test_paths: list[str] = []
    for item in root:
        if item.type != "dir" or item.name.lower() not in TEST_DIR_NAMES:
            continue
        try:
            children = await github.list_contents(repo.owner, repo.name, item.path, repo.default_branch)
        except Exception as e:
            logger.debug("Could not list %s in %s: %s", item.path, repo.key, e)
            continue
        test_paths.extend(c.path for c in children if c.type == "file")

    return score_repository(repo.key, root, test_paths, analysis)


async def quality_analyzer_node(
    state: WorkflowState,
    github: GitHubPort,
    report_progress: ProgressReporter | None = None,
) -> WorkflowState:
    """Score every analyzed repository. Updates quality_reports and badges."""
    analyses = state.get("repo_analyses") or {}
    updates: WorkflowState = {
        "current_step": AgentStep.QUALITY,
        "completed_steps": {AgentStep.QUALITY},
        "quality_reports": {},
        "badges": {},
    }
    if not analyses:
        logger.warning("No repository analyses available, skipping")
        return updates

    reports: dict[str, QualityReport] = {}
    badges: dict[str, str] = {}
    errors: dict[str, str] = {}
    total = len(analyses)
    for idx, (key, analysis) in enumerate(analyses.items(), start=1):
        if report_progress:
            report_progress(Progress(current=idx, total=total, current_repo=key, current_agent=AGENT_NAME))
        try:
            report = await assess_repository(analysis, github)
            reports[key] = report
            badges[key] = generate_badges(analysis.repo, report)
            logger.info("Quality score for %s: %d/100", key, report.overall_score)
        except Exception as e:
            logger.error("Error analyzing quality for %s: %s", key, e)
            errors[error_key(AgentStep.QUALITY, key)] = str(e) or "Quality analysis failed"

    updates["quality_reports"] = reports
    updates["badges"] = badges
    updates["progress"] = Progress(current=total, total=total, current_agent=AGENT_NAME)
    if errors:
        updates["errors"] = errors
    return updates
