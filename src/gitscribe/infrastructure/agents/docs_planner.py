"""DocsPlanner agent - plans documentation sections per analyzed repository."""

import logging
from typing import Any, get_args

from gitscribe.domain.entities.documentation import (
    DocumentationPlan,
    PlannedSection,
    PlannedSectionType,
    PlanStyle,
)
from gitscribe.domain.entities.repository import RepoAnalysis
from gitscribe.domain.entities.workflow_state import Progress, ProgressReporter, WorkflowState
from gitscribe.domain.entities.workflow_step import AgentStep
from gitscribe.domain.ports.llm import LLMPort
from gitscribe.domain.services.error_keys import error_key
from gitscribe.infrastructure.agents.llm_helpers import complete, parse_json_response

logger = logging.getLogger(__name__)

AGENT_NAME = "DocsPlanner"

SYSTEM_PROMPT = "You are a documentation planning expert. Create detailed, structured documentation plans."

_SECTION_TYPES = set(get_args(PlannedSectionType))
_STYLES = set(get_args(PlanStyle))

DEFAULT_SECTIONS: tuple[tuple[str, str, int, int], ...] = (
    ("Overview", "overview", 10, 300),
    ("Features", "features", 9, 500),
    ("Setup", "setup", 8, 400),
    ("Architecture", "architecture", 7, 600),
    ("Examples", "examples", 6, 400),
)


def default_plan(analysis: RepoAnalysis) -> DocumentationPlan:
    """Fixed five-section plan."""
    return DocumentationPlan(
        repo=analysis.repo,
        sections=[
            PlannedSection(title=title, type=kind, priority=priority, estimated_tokens=tokens)
            for title, kind, priority, tokens in DEFAULT_SECTIONS
        ],
        estimated_length=3000,
        focus_areas=list(analysis.key_features),
        style="comprehensive",
    )


def _int_or(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def plan_from_json(analysis: RepoAnalysis, data: dict[str, Any]) -> DocumentationPlan:
    sections = []
    for raw in data.get("sections") or []:
        if not isinstance(raw, dict) or not raw.get("title"):
            continue
        kind = raw.get("type")
        sections.append(
            PlannedSection(
                title=str(raw["title"]),
                type=kind if kind in _SECTION_TYPES else "overview",
                priority=_int_or(raw.get("priority"), 5),
                estimated_tokens=_int_or(raw.get("estimatedTokens"), 500),
            )
        )
    focus = data.get("focusAreas")
    style = data.get("style")
    return DocumentationPlan(
        repo=analysis.repo,
        sections=sections,
        estimated_length=_int_or(data.get("estimatedLength"), 5000),
        focus_areas=[str(f) for f in focus] if isinstance(focus, list) else list(analysis.key_features),
        style=style if style in _STYLES else "comprehensive",
    )


def _build_prompt(key: str, analysis: RepoAnalysis) -> str:
    s = analysis.structure
    return (
        "Create a documentation plan for this repository:\n\n"
        f"Repository: {key}\n"
        f"Summary: {analysis.summary}\n"
        f"Key Features: {', '.join(analysis.key_features)}\n"
        f"Tech Stack: {', '.join(analysis.tech_stack)}\n"
        f"Complexity: {analysis.complexity}\n"
        f"Has README: {s.has_readme}\n"
        f"Has package manifest: {s.has_package_manifest}\n"
        f"Main Files: {', '.join(s.main_files[:10])}\n\n"
        "Return JSON format:\n"
        '{"sections": [{"title": "Section Title", '
        '"type": "overview|features|setup|api|architecture|examples", '
        '"priority": 1, "estimatedTokens": 500}], '
        '"estimatedLength": 5000, "focusAreas": ["area1"], '
        '"style": "technical|user-friendly|comprehensive"}'
    )


async def plan_documentation(key: str, analysis: RepoAnalysis, llm: LLMPort, model: str) -> DocumentationPlan:
    """Plan for one repository; sections sorted by priority, highest first."""
    plan: DocumentationPlan | None = None
    try:
        response = await complete(llm, _build_prompt(key, analysis), SYSTEM_PROMPT, model, 0.4)
        data = parse_json_response(response)
        if data is not None:
            plan = plan_from_json(analysis, data)
        else:
            logger.warning("Unparsable plan for %s, using default plan", key)
    except Exception as e:
        logger.warning("AI planning failed for %s, using default plan: %s", key, e)
    if plan is None or not plan.sections:
        plan = default_plan(analysis)
    plan.sections.sort(key=lambda s: s.priority, reverse=True)
    return plan


async def docs_planner_node(
    state: WorkflowState,
    llm: LLMPort,
    model: str,
    report_progress: ProgressReporter | None = None,
) -> WorkflowState:
    """Plan documentation for every analysis. Updates state['documentation_plans']."""
    analyses = state.get("repo_analyses") or {}
    model = state.get("selected_model") or model
    updates: WorkflowState = {
        "current_step": AgentStep.PLANNING,
        "completed_steps": {AgentStep.PLANNING},
        "documentation_plans": {},
    }
    if not analyses:
        updates["errors"] = {error_key(AgentStep.PLANNING): "No repository analyses available"}
        return updates

    plans: dict[str, DocumentationPlan] = {}
    errors: dict[str, str] = {}
    total = len(analyses)
    for idx, (key, analysis) in enumerate(analyses.items(), start=1):
        if report_progress:
            report_progress(Progress(current=idx, total=total, current_repo=key, current_agent=AGENT_NAME))
        try:
            plans[key] = await plan_documentation(key, analysis, llm, model)
        except Exception as e:
            logger.error("Error planning for %s: %s", key, e)
            errors[error_key(AgentStep.PLANNING, key)] = str(e) or "Planning failed"

    logger.info("Planned documentation for %d repositories", len(plans))
    updates["documentation_plans"] = plans
    updates["progress"] = Progress(current=total, total=total, current_agent=AGENT_NAME)
    if errors:
        updates["errors"] = errors
    return updates
