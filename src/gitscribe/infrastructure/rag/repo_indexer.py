"""Repository indexing and context retrieval on top of RAGPort."""

import logging

from gitscribe.domain.entities.documentation import DocSectionType
from gitscribe.domain.entities.repository import RepoRef
from gitscribe.domain.ports.config import RAGConfig
from gitscribe.domain.ports.github import GitHubPort
from gitscribe.domain.ports.rag import Chunk, RAGPort

logger = logging.getLogger(__name__)

CODE_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".py", ".java", ".go", ".rs", ".cpp", ".c", ".h", ".hpp")

EXCLUDED_DIRS = {".git", ".venv", "venv", "node_modules", "__pycache__", "dist", "build", ".next", "coverage", "vendor"}

DATABASE_QUERY = (
    "Database schema, migrations, seed data, models, entities. What data does this application "
    "store and manage? What are the main entities, tables, or data models?"
)
PURPOSE_QUERY = (
    "What does this application do? What is its main purpose and core functionality? "
    "Main entry points, app initialization, and primary features."
)


async def list_code_files(github: GitHubPort, repo: RepoRef, max_depth: int = 3) -> list[str]:
    """Paths of source files down to max_depth directory levels. Unlistable directories are skipped."""
    paths: list[str] = []
    pending: list[tuple[str, int]] = [("", 0)]
    while pending:
        directory, depth = pending.pop(0)
        try:
            items = await github.list_contents(repo.owner, repo.name, directory, repo.default_branch)
        except Exception as e:
            if not directory:
                raise
            logger.debug("Skipping %s in %s: %s", directory, repo.key, e)
            continue
        for item in items:
            if item.type == "dir":
                if depth + 1 < max_depth and item.name not in EXCLUDED_DIRS:
                    pending.append((item.path, depth + 1))
            elif item.path.lower().endswith(CODE_EXTENSIONS):
                paths.append(item.path)
    return paths


async def collect_code_files(
    github: GitHubPort,
    repo: RepoRef,
    max_files: int = 50,
    max_depth: int = 3,
) -> list[tuple[str, str]]:
    """(path, content) of up to max_files source files. Files that cannot be fetched are skipped."""
    files: list[tuple[str, str]] = []
    for path in (await list_code_files(github, repo, max_depth))[:max_files]:
        try:
            content = await github.fetch_file(repo.owner, repo.name, path, repo.default_branch)
        except Exception as e:
            logger.warning("Failed to fetch %s from %s: %s", path, repo.key, e)
            continue
        if content:
            files.append((path, content))
    return files


async def index_repository(rag: RAGPort, github: GitHubPort, repo: RepoRef, config: RAGConfig) -> int:
    """Fetch the repository's source files and replace its index. Returns chunks stored."""
    files = await collect_code_files(github, repo, config.max_files, config.max_depth)
    logger.info("Indexing %d code files for %s", len(files), repo.key)
    return await rag.index_repository(repo.key, files)


def format_chunks(chunks: list[Chunk]) -> str:
    """Chunks as numbered, source-labelled context blocks."""
    return "\n\n".join(
        f"[Context {i}] {chunk.metadata.get('source', 'unknown')}:\n{chunk.content}"
        for i, chunk in enumerate(chunks, start=1)
    )


async def retrieve_context(rag: RAGPort, repo_key: str, section_type: DocSectionType, top_k: int = 8) -> str:
    """Code context for one section: data models, purpose and section-specific code.

    If the three targeted searches fail, one broad search with twice the results is
    tried. If that fails too, the context is empty.
    """
    queries = (
        ("Database and Data Models", DATABASE_QUERY),
        ("Application Purpose", PURPOSE_QUERY),
        (
            "Code Structure",
            f"Generate {section_type.value} documentation for {repo_key}. "
            "Code structure, architecture, components, APIs, and implementation details.",
        ),
    )
    try:
        parts = []
        for label, query in queries:
            chunks = await rag.search(query, repo_key, top_k)
            if chunks:
                parts.append(f"{label}:\n{format_chunks(chunks)}")
        context = "\n\n".join(parts)
    except Exception as e:
        logger.warning(
            "Context retrieval failed for %s (%s), trying one broad query: %s", repo_key, section_type.value, e
        )
        try:
            context = format_chunks(
                await rag.search(
                    f"{PURPOSE_QUERY} {DATABASE_QUERY} Code structure for {section_type.value} documentation",
                    repo_key,
                    top_k * 2,
                )
            )
        except Exception as fallback_error:
            logger.error("Broad context retrieval failed for %s: %s", repo_key, fallback_error)
            return ""
    if not context:
        logger.warning("No code context for %s; %s may not be indexed", section_type.value, repo_key)
    return context
