"""DocsWriter agent - writes each requested section type and renders every requested format."""

import logging

from gitscribe.domain.entities.documentation import (
    LANGUAGE_NAMES,
    DocLanguage,
    DocOutputFormat,
    DocSection,
    DocSectionType,
    DocumentationPlan,
    GeneratedDocs,
)
from gitscribe.domain.entities.repository import RepoAnalysis
from gitscribe.domain.entities.workflow_state import Progress, ProgressReporter, WorkflowState
from gitscribe.domain.entities.workflow_step import AgentStep
from gitscribe.domain.ports.config import RAGConfig, WorkflowConfig
from gitscribe.domain.ports.llm import LLMPort
from gitscribe.domain.ports.rag import RAGPort
from gitscribe.domain.services.error_keys import error_key
from gitscribe.infrastructure.agents.format_generators import render_section, section_title
from gitscribe.infrastructure.agents.llm_helpers import complete, strip_code_fence
from gitscribe.infrastructure.rag.repo_indexer import retrieve_context

logger = logging.getLogger(__name__)

AGENT_NAME = "DocsWriter"
MAX_CONTEXT_CHARS = 12000

SYSTEM_PROMPT = (
    "You are a senior technical writer. Write accurate, well-structured Markdown documentation "
    "grounded only in the repository facts you are given."
)

SECTION_GUIDANCE: dict[DocSectionType, str] = {
    DocSectionType.README: "a complete README: purpose, features, installation, usage and contributing",
    DocSectionType.ARCHITECTURE: "the architecture: main components, their responsibilities and data flow",
    DocSectionType.API: "the public API: endpoints or exported functions, parameters and return values",
    DocSectionType.COMPONENTS: "the main components or modules and how they relate",
    DocSectionType.TESTING_CI: "how to run the tests and what the CI pipeline does",
    DocSectionType.CHANGELOG: "a changelog skeleton in Keep a Changelog style",
    DocSectionType.INLINE_CODE: "guidance and examples for inline code documentation (docstrings, comments)",
}


def _build_prompt(
    section_type: DocSectionType,
    plan: DocumentationPlan,
    analysis: RepoAnalysis | None,
    language: DocLanguage,
    code_context: str = "",
) -> str:
    repo = plan.repo
    lines = [
        f"Write {SECTION_GUIDANCE.get(section_type, 'documentation')} for {repo.full_name}.",
        f"Write in {LANGUAGE_NAMES.get(language, 'English')}.",
        f"Style: {plan.style}. Focus areas: {', '.join(plan.focus_areas) or 'general'}.",
        f"Planned sections: {', '.join(s.title for s in plan.sections)}.",
    ]
    if analysis is not None:
        lines += [
            f"Summary: {analysis.summary}",
            f"Key features: {', '.join(analysis.key_features)}",
            f"Tech stack: {', '.join(analysis.tech_stack)}",
            f"Main files: {', '.join(analysis.structure.main_files[:15])}",
        ]
    if code_context:
        lines += [
            "",
            "Code from the repository. Document only what this code and the facts above support:",
            code_context[:MAX_CONTEXT_CHARS],
            "",
        ]
    else:
        lines.append("No repository code is available. Do not invent features, endpoints or files.")
    lines.append("Return Markdown only. Do not add a top-level title; it is added separately.")
    return "\n".join(lines)


def fallback_content(
    section_type: DocSectionType,
    plan: DocumentationPlan,
    analysis: RepoAnalysis | None,
    badges: str | None = None,
) -> str:
    """Deterministic markdown body built from the plan and analysis."""
    repo = plan.repo
    parts: list[str] = []
    if badges and section_type == DocSectionType.README:
        parts.append(badges)
    summary = (analysis.summary if analysis else "") or repo.description or f"Documentation for {repo.full_name}."
    parts.append(f"## {repo.name}\n\n{summary}")
    if analysis is not None:
        if analysis.key_features:
            parts.append("## Features\n\n" + "\n".join(f"- {f}" for f in analysis.key_features))
        if analysis.tech_stack:
            parts.append("## Tech Stack\n\n" + "\n".join(f"- {t}" for t in analysis.tech_stack))
    for planned in plan.sections:
        if planned.type in ("overview", "features"):
            continue
        parts.append(f"## {planned.title}\n\n_To be documented._")
    return "\n\n".join(parts) + "\n"


async def write_section_content(
    section_type: DocSectionType,
    plan: DocumentationPlan,
    analysis: RepoAnalysis | None,
    language: DocLanguage,
    llm: LLMPort,
    model: str,
    badges: str | None = None,
    code_context: str = "",
) -> str:
    """Section body from the LLM, or the deterministic fallback."""
    prompt = _build_prompt(section_type, plan, analysis, language, code_context)
    try:
        content = strip_code_fence(await complete(llm, prompt, SYSTEM_PROMPT, model, 0.5))
    except Exception as e:
        logger.warning("Section %s failed for %s, using fallback: %s", section_type.value, plan.repo.key, e)
        content = ""
    if not content:
        return fallback_content(section_type, plan, analysis, badges)
    if badges and section_type == DocSectionType.README:
        content = f"{badges}\n\n{content}"
    return content


async def write_repository_docs(
    plan: DocumentationPlan,
    analysis: RepoAnalysis | None,
    formats: list[DocOutputFormat],
    section_types: list[DocSectionType],
    language: DocLanguage,
    llm: LLMPort,
    model: str,
    badges: str | None = None,
    rag: RAGPort | None = None,
    top_k: int = 8,
) -> GeneratedDocs:
    """Every (section type, format) pair for one repository. Failing formats are skipped.

    With a RAG store, each section type is written against code retrieved for it.
    """
    repo = plan.repo
    sections: list[DocSection] = []
    first_body = ""
    for section_type in section_types:
        code_context = await retrieve_context(rag, repo.key, section_type, top_k) if rag is not None else ""
        body = await write_section_content(
            section_type, plan, analysis, language, llm, model, badges, code_context
        )
        first_body = first_body or body
        for output_format in formats:
            try:
                sections.append(
                    await render_section(
                        output_format,
                        section_type,
                        body,
                        repo=repo,
                        analysis=analysis,
                        language=language,
                        llm=llm,
                        model=model,
                    )
                )
            except Exception as e:
                logger.error(
                    "Error rendering %s for %s in %s: %s", output_format.value, section_type.value, repo.key, e
                )

    if not sections:
        section_type = section_types[0] if section_types else DocSectionType.README
        logger.warning("No sections generated for %s, using fallback section", repo.key)
        sections.append(
            DocSection(
                id=f"{repo.name}-fallback",
                type=section_type,
                format=DocOutputFormat.MARKDOWN,
                language=language,
                title=section_title(section_type),
                markdown=first_body or fallback_content(section_type, plan, analysis, badges),
            )
        )
    return GeneratedDocs(repo_name=repo.name, owner=repo.owner, sections=sections)


def first_markdown(docs: GeneratedDocs) -> str:
    """First markdown body, else the first body of any kind."""
    for section in docs.sections:
        if section.markdown:
            return section.markdown
    return docs.sections[0].content if docs.sections else ""


async def docs_writer_node(
    state: WorkflowState,
    llm: LLMPort,
    model: str,
    report_progress: ProgressReporter | None = None,
    defaults: WorkflowConfig | None = None,
    rag: RAGPort | None = None,
    rag_config: RAGConfig | None = None,
) -> WorkflowState:
    """Write documentation for every plan. Updates generated_docs and generated_docs_full."""
    plans = state.get("documentation_plans") or {}
    defaults = defaults or WorkflowConfig()
    updates: WorkflowState = {
        "current_step": AgentStep.WRITING,
        "completed_steps": {AgentStep.WRITING},
        "generated_docs": {},
        "generated_docs_full": {},
    }
    if not plans:
        updates["errors"] = {error_key(AgentStep.WRITING): "No documentation plans available"}
        return updates

    formats = state.get("selected_output_formats") or list(defaults.default_output_formats)
    section_types = state.get("selected_section_types") or list(defaults.default_section_types)
    language = state.get("selected_language") or defaults.default_language
    model = state.get("selected_model") or model
    analyses = state.get("repo_analyses") or {}
    badges = state.get("badges") or {}

    docs: dict[str, str] = {}
    full: dict[str, GeneratedDocs] = {}
    errors: dict[str, str] = {}
    total = len(plans)
    for idx, (key, plan) in enumerate(plans.items(), start=1):
        if report_progress:
            report_progress(Progress(current=idx, total=total, current_repo=key, current_agent=AGENT_NAME))
        try:
            generated = await write_repository_docs(
                plan,
                analyses.get(key),
                formats,
                section_types,
                language,
                llm,
                model,
                badges.get(key),
                rag=rag,
                top_k=(rag_config or RAGConfig()).top_k,
            )
            full[key] = generated
            docs[key] = first_markdown(generated)
            logger.info("Generated %d sections for %s", len(generated.sections), key)
        except Exception as e:
            logger.error("Error generating docs for %s: %s", key, e)
            errors[error_key(AgentStep.WRITING, key)] = str(e) or "Documentation generation failed"

    updates["generated_docs"] = docs
    updates["generated_docs_full"] = full
    updates["progress"] = Progress(current=total, total=total, current_agent=AGENT_NAME)
    if errors:
        updates["errors"] = errors
    return updates
