"""Render a section's base markdown into each output format."""

import html
import logging
import re

import markdown2
import yaml

from gitscribe.domain.entities.documentation import (
    SECTION_TITLES,
    DocLanguage,
    DocOutputFormat,
    DocSection,
    DocSectionType,
)
from gitscribe.domain.entities.repository import RepoAnalysis, RepoRef
from gitscribe.domain.ports.llm import LLMPort
from gitscribe.infrastructure.agents.llm_helpers import complete, strip_code_fence

logger = logging.getLogger(__name__)

MERMAID_SYSTEM_PROMPT = (
    "You are an expert at creating Mermaid diagrams for software documentation. "
    "Return only the diagram code, without code fences."
)
OPENAPI_SYSTEM_PROMPT = (
    "You are an expert at creating OpenAPI specifications. "
    "Return only valid OpenAPI 3.0 YAML, without code fences."
)

_DIAGRAM_FOCUS: dict[DocSectionType, str] = {
    DocSectionType.ARCHITECTURE: "the system architecture, component relationships and data flow",
    DocSectionType.API: "API endpoints, request/response flow and data models",
    DocSectionType.COMPONENTS: "component hierarchy and component relationships",
}

HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="{lang}">
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
body {{ font-family: -apple-system, 'Segoe UI', Roboto, sans-serif; line-height: 1.7; max-width: 860px; margin: 2rem auto; color: #1a1a1a; }}
pre {{ background: #f6f8fa; padding: 1rem; overflow-x: auto; border-radius: 6px; }}
code {{ font-family: 'SFMono-Regular', Consolas, monospace; }}
table {{ border-collapse: collapse; }}
th, td {{ border: 1px solid #d0d7de; padding: 6px 12px; }}
</style>
</head>
<body>
{body}
</body>
</html>
"""

_NODE_ID_RE = re.compile(r"[^A-Za-z0-9_]")


def section_title(section_type: DocSectionType) -> str:
    return SECTION_TITLES.get(section_type, "Documentation")


def section_header(section_type: DocSectionType) -> str:
    return f"# {section_title(section_type)}"


def render_markdown(section_type: DocSectionType, base_markdown: str) -> str:
    return f"{section_header(section_type)}\n\n{base_markdown}"


def fallback_mermaid(repo: RepoRef, analysis: RepoAnalysis | None) -> str:
    """Deterministic 'graph TD' of the tech stack and main files."""
    lines = ["graph TD", f'    repo["{repo.name}"]']
    if analysis is not None:
        for idx, tech in enumerate(analysis.tech_stack[:8]):
            lines.append(f'    repo --> tech{idx}["{tech}"]')
        for idx, path in enumerate(analysis.structure.main_files[:8]):
            node = _NODE_ID_RE.sub("_", path) or f"file{idx}"
            lines.append(f'    repo --> f_{node}["{path}"]')
    return "\n".join(lines)


async def render_markdown_mermaid(
    section_type: DocSectionType,
    base_markdown: str,
    repo: RepoRef,
    analysis: RepoAnalysis | None,
    llm: LLMPort,
    model: str,
) -> str:
    focus = _DIAGRAM_FOCUS.get(section_type, "the structure and relationships")
    context = ""
    if analysis is not None:
        context = (
            f"Tech Stack: {', '.join(analysis.tech_stack) or 'Unknown'}\n"
            f"Frameworks: {', '.join(analysis.structure.frameworks) or 'Unknown'}\n"
            f"Languages: {', '.join(analysis.structure.languages) or 'Unknown'}"
        )
    prompt = (
        f"Generate a Mermaid diagram for the {section_type.value} section of {repo.full_name}.\n\n"
        f"{context}\n\nDocumentation:\n{base_markdown[:2000]}\n\n"
        f"The diagram should show {focus}."
    )
    try:
        diagram = strip_code_fence(await complete(llm, prompt, MERMAID_SYSTEM_PROMPT, model, 0.4))
    except Exception as e:
        logger.warning("Mermaid generation failed for %s, using fallback: %s", repo.full_name, e)
        diagram = ""
    if not diagram:
        diagram = fallback_mermaid(repo, analysis)
    return f"{section_header(section_type)}\n\n```mermaid\n{diagram}\n```\n\n{base_markdown}"


def render_mdx(section_type: DocSectionType, base_markdown: str, language: DocLanguage) -> str:
    """Markdown with YAML front matter."""
    front_matter = yaml.safe_dump(
        {"title": section_title(section_type), "section": section_type.value, "language": language.value},
        sort_keys=False,
        allow_unicode=True,
    )
    return f"---\n{front_matter}---\n\n{render_markdown(section_type, base_markdown)}"


def fallback_openapi(repo: RepoRef, analysis: RepoAnalysis | None = None) -> str:
    """Minimal valid OpenAPI 3.0.3 document."""
    description = (analysis.summary if analysis and analysis.summary else None) or (
        f"Auto-generated API documentation for {repo.full_name}"
    )
    document = {
        "openapi": "3.0.3",
        "info": {"title": f"{repo.name} API", "version": "1.0.0", "description": description},
        "paths": {
            "/health": {
                "get": {
                    "summary": "Health check endpoint",
                    "responses": {"200": {"description": "Service is healthy"}},
                }
            }
        },
    }
    return yaml.safe_dump(document, sort_keys=False, allow_unicode=True)


def is_valid_openapi(text: str) -> bool:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        return False
    return isinstance(data, dict) and "openapi" in data and "paths" in data


async def render_openapi(
    base_markdown: str,
    repo: RepoRef,
    analysis: RepoAnalysis | None,
    llm: LLMPort,
    model: str,
) -> str:
    context = ""
    if analysis is not None:
        context = (
            f"Tech Stack: {', '.join(analysis.tech_stack) or 'Unknown'}\n"
            f"Frameworks: {', '.join(analysis.structure.frameworks) or 'Unknown'}"
        )
    prompt = (
        f"Generate an OpenAPI 3.0 specification for {repo.full_name}.\n{context}\n\n"
        f"Documentation:\n{base_markdown[:3000]}\n\n"
        "Include info, servers, paths with request/response schemas."
    )
    try:
        candidate = strip_code_fence(await complete(llm, prompt, OPENAPI_SYSTEM_PROMPT, model, 0.5))
    except Exception as e:
        logger.warning("OpenAPI generation failed for %s, using fallback: %s", repo.full_name, e)
        candidate = ""
    if candidate and is_valid_openapi(candidate):
        return candidate
    return fallback_openapi(repo, analysis)


def render_html(section_type: DocSectionType, base_markdown: str, language: DocLanguage) -> str:
    """Standalone HTML document from markdown."""
    body = markdown2.markdown(render_markdown(section_type, base_markdown), extras=["fenced-code-blocks", "tables"])
    return HTML_TEMPLATE.format(lang=language.value, title=html.escape(section_title(section_type)), body=body)


async def render_section(
    output_format: DocOutputFormat,
    section_type: DocSectionType,
    base_markdown: str,
    *,
    repo: RepoRef,
    analysis: RepoAnalysis | None,
    language: DocLanguage,
    llm: LLMPort,
    model: str,
) -> DocSection:
    """Render one (section type, format) pair into a DocSection."""
    section = DocSection(
        id=f"{repo.name}-{section_type.value.lower()}-{output_format.value}",
        type=section_type,
        format=output_format,
        language=language,
        title=section_title(section_type),
    )
    if output_format == DocOutputFormat.MARKDOWN:
        section.markdown = render_markdown(section_type, base_markdown)
    elif output_format == DocOutputFormat.MARKDOWN_MERMAID:
        section.markdown = await render_markdown_mermaid(section_type, base_markdown, repo, analysis, llm, model)
    elif output_format == DocOutputFormat.MDX:
        section.markdown = render_mdx(section_type, base_markdown, language)
    elif output_format == DocOutputFormat.OPENAPI:
        section.openapi_yaml = await render_openapi(base_markdown, repo, analysis, llm, model)
    elif output_format == DocOutputFormat.HTML:
        section.html = render_html(section_type, base_markdown, language)
    else:
        raise ValueError(f"Unsupported output format: {output_format}")
    return section
