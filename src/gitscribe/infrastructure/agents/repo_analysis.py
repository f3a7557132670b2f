"""RepoAnalysis agent - structure, tech stack and an LLM summary per repository."""

import json
import logging
import re
import tomllib

from gitscribe.domain.entities.repository import Complexity, RepoAnalysis, RepoRef, RepoStructure
from gitscribe.domain.entities.workflow_state import Progress, ProgressReporter, WorkflowState
from gitscribe.domain.entities.workflow_step import AgentStep
from gitscribe.domain.ports.config import RAGConfig
from gitscribe.domain.ports.github import ContentItem, GitHubPort
from gitscribe.domain.ports.llm import LLMPort
from gitscribe.domain.ports.rag import RAGPort
from gitscribe.domain.services.error_keys import error_key
from gitscribe.infrastructure.agents.llm_helpers import complete, parse_json_response
from gitscribe.infrastructure.rag.repo_indexer import index_repository

logger = logging.getLogger(__name__)

AGENT_NAME = "RepoAnalysis"

SYSTEM_PROMPT = "You are a technical analyst. Provide concise, accurate analysis of code repositories."

MANIFEST_FILES = ("package.json", "pyproject.toml", "requirements.txt")

EXTENSION_LANGUAGES: dict[str, str] = {
    "ts": "TypeScript",
    "tsx": "TypeScript",
    "js": "JavaScript",
    "jsx": "JavaScript",
    "py": "Python",
    "java": "Java",
    "go": "Go",
    "rs": "Rust",
    "rb": "Ruby",
    "php": "PHP",
}

FRAMEWORK_PACKAGES: dict[str, str] = {
    "react": "React",
    "vue": "Vue",
    "@angular/core": "Angular",
    "angular": "Angular",
    "next": "Next.js",
    "express": "Express",
    "fastify": "Fastify",
    "fastapi": "FastAPI",
    "django": "Django",
    "flask": "Flask",
}

_REQUIREMENT_NAME_RE = re.compile(r"^\s*([A-Za-z0-9_.\-@/]+)")


def manifest_dependencies(filename: str, content: str) -> list[str]:
    """Dependency names declared in a package manifest. Unparsable input yields []."""
    try:
        if filename == "package.json":
            data = json.loads(content)
            deps = {**(data.get("dependencies") or {}), **(data.get("devDependencies") or {})}
            return list(deps)
        if filename == "pyproject.toml":
            data = tomllib.loads(content)
            raw = data.get("project", {}).get("dependencies", [])
            poetry = data.get("tool", {}).get("poetry", {}).get("dependencies", {})
            names = [_REQUIREMENT_NAME_RE.match(r).group(1) for r in raw if _REQUIREMENT_NAME_RE.match(r)]
            return names + [n for n in poetry if n != "python"]
    except (json.JSONDecodeError, tomllib.TOMLDecodeError, AttributeError, TypeError) as e:
        logger.warning("Could not parse %s: %s", filename, e)
        return []
    names = []
    for line in content.splitlines():
        line = line.strip()
        if not line or line.startswith(("#", "-")):
            continue
        match = _REQUIREMENT_NAME_RE.match(line)
        if match:
            names.append(match.group(1))
    return names


def detect_languages(root: list[ContentItem]) -> list[str]:
    languages: list[str] = []
    for item in root:
        if item.type != "file" or "." not in item.name:
            continue
        language = EXTENSION_LANGUAGES.get(item.name.rsplit(".", 1)[1].lower())
        if language and language not in languages:
            languages.append(language)
    return languages


def detect_frameworks(dependencies: list[str]) -> list[str]:
    frameworks: list[str] = []
    for dep in dependencies:
        framework = FRAMEWORK_PACKAGES.get(dep.lower())
        if framework and framework not in frameworks:
            frameworks.append(framework)
    return frameworks


def estimate_complexity(root: list[ContentItem], has_manifest: bool) -> Complexity:
    """Structural complexity heuristic over the root listing."""
    names = [i.name.lower() for i in root]
    has_tests = any("test" in n or "spec" in n for n in names)
    has_config = any("config" in n or n.endswith((".json", ".yaml", ".yml", ".toml")) for n in names)
    if len(root) < 10 and not has_tests and not has_config:
        return "simple"
    if len(root) > 50 or (has_tests and has_config and has_manifest):
        return "complex"
    return "moderate"


async def _fetch_optional(github: GitHubPort, repo: RepoRef, path: str) -> str | None:
    try:
        return await github.fetch_file(repo.owner, repo.name, path, repo.default_branch)
    except Exception as e:
        logger.debug("Skipping %s for %s: %s", path, repo.full_name, e)
        return None


def _build_prompt(
    repo: RepoRef,
    languages: list[str],
    main_files: list[str],
    dependencies: list[str],
    readme: str | None,
) -> str:
    lines = [
        "Analyze this GitHub repository.",
        "",
        f"Repository: {repo.full_name}",
        f"Description: {repo.description or 'No description'}",
        f"Language: {repo.language or ', '.join(languages) or 'Unknown'}",
        f"Main files: {', '.join(main_files[:10])}",
    ]
    if dependencies:
        lines.append(f"Dependencies: {', '.join(dependencies[:20])}")
    if readme:
        lines.append(f"\nREADME (first 1000 chars):\n{readme[:1000]}")
    lines.append(
        "\nRespond with JSON only:\n"
        '{"summary": "4-6 sentences on what the project does", '
        '"keyFeatures": ["..."], "techStack": ["..."], '
        '"complexity": "simple|moderate|complex"}'
    )
    return "\n".join(lines)


async def analyze_repository(
    repo: RepoRef,
    llm: LLMPort,
    github: GitHubPort,
    model: str,
    rag: RAGPort | None = None,
    rag_config: RAGConfig | None = None,
) -> RepoAnalysis:
    """Analyze one repository and index its code when a RAG store is given.

    Root listing failures propagate. Indexing failures are logged and ignored.
    """
    root = await github.list_contents(repo.owner, repo.name, "", repo.default_branch)
    if rag is not None:
        try:
            await index_repository(rag, github, repo, rag_config or RAGConfig())
        except Exception as e:
            logger.warning("Code indexing failed for %s: %s", repo.full_name, e)
    readme = await _fetch_optional(github, repo, "README.md")

    dependencies: list[str] = []
    has_manifest = False
    for filename in MANIFEST_FILES:
        content = await _fetch_optional(github, repo, filename)
        if content is None:
            continue
        has_manifest = True
        dependencies.extend(manifest_dependencies(filename, content))

    languages = detect_languages(root)
    frameworks = detect_frameworks(dependencies)
    main_files = [i.name for i in root if i.type == "file" and not i.name.startswith(".")]

    summary = ""
    key_features: list[str] = []
    tech_stack = [*languages, *frameworks]
    complexity: str | None = None

    try:
        response = await complete(
            llm, _build_prompt(repo, languages, main_files, dependencies, readme), SYSTEM_PROMPT, model, 0.3
        )
        parsed = parse_json_response(response)
        if parsed is not None:
            summary = str(parsed.get("summary") or "")
            key_features = [str(f) for f in parsed.get("keyFeatures") or []]
            tech_stack = list(dict.fromkeys([*tech_stack, *(str(t) for t in parsed.get("techStack") or [])]))
            complexity = parsed.get("complexity")
        else:
            logger.warning("Unparsable analysis for %s, using first line", repo.full_name)
            summary = response.strip().split("\n")[0]
    except Exception as e:
        logger.warning("LLM analysis failed for %s, using fallback: %s", repo.full_name, e)
        summary = repo.description or ""
        key_features = list(frameworks) or ["General purpose"]

    if complexity not in ("simple", "complex"):
        complexity = estimate_complexity(root, has_manifest)

    return RepoAnalysis(
        repo=repo,
        structure=RepoStructure(
            languages=languages,
            frameworks=frameworks,
            has_readme=readme is not None,
            has_package_manifest=has_manifest,
            has_config_files=any("config" in i.name.lower() for i in root),
            main_files=main_files[:20],
        ),
        summary=summary or repo.description or f"A {repo.language or 'software'} project",
        key_features=key_features or ["General purpose application"],
        tech_stack=list(dict.fromkeys(tech_stack)),
        complexity=complexity,
    )


async def repo_analysis_node(
    state: WorkflowState,
    llm: LLMPort,
    github: GitHubPort,
    model: str,
    report_progress: ProgressReporter | None = None,
    rag: RAGPort | None = None,
    rag_config: RAGConfig | None = None,
) -> WorkflowState:
    """Analyze every discovered repository. Updates state["repo_analyses"]."""
    repos = state.get("discovered_repos") or []
    model = state.get("selected_model") or model
    updates: WorkflowState = {
        "current_step": AgentStep.ANALYSIS,
        "completed_steps": {AgentStep.ANALYSIS},
        "repo_analyses": {},
    }
    if not repos:
        updates["errors"] = {error_key(AgentStep.ANALYSIS): "No repositories to analyze"}
        return updates

    analyses: dict[str, RepoAnalysis] = {}
    errors: dict[str, str] = {}
    total = len(repos)
    for idx, repo in enumerate(repos, start=1):
        if report_progress:
            report_progress(Progress(current=idx, total=total, current_repo=repo.key, current_agent=AGENT_NAME))
        try:
            analyses[repo.key] = await analyze_repository(repo, llm, github, model, rag, rag_config)
            logger.info("Analyzed %s (%d/%d)", repo.key, idx, total)
        except Exception as e:
            logger.error("Error analyzing %s: %s", repo.key, e)
            errors[error_key(AgentStep.ANALYSIS, repo.key)] = str(e) or "Analysis failed"

    updates["repo_analyses"] = analyses
    updates["progress"] = Progress(current=total, total=total, current_agent=AGENT_NAME)
    if errors:
        updates["errors"] = errors
    return updates
