"""Rule-based folder refactor proposal, used when the LLM gives no usable answer."""

import re

from gitscribe.domain.entities.quality import FolderSuggestion, RefactorMove, RefactorProposal
from gitscribe.domain.ports.github import ContentItem

MAX_MOVES = 15

_SOURCE_FILE_RE = re.compile(r"\.(js|ts|jsx|tsx|py|java|go|rs|rb|php)$", re.IGNORECASE)


def propose_structure(repo_name: str, root: list[ContentItem]) -> RefactorProposal:
    """Suggest src/, tests/ and docs/ folders and move loose root sources into src/."""
    root_files = [i for i in root if i.type == "file"]
    root_dirs = [i.path.lower() for i in root if i.type == "dir"]

    has_src = "src" in root_dirs
    has_tests = any("test" in d for d in root_dirs)
    has_docs = any("doc" in d for d in root_dirs)

    suggestions: list[FolderSuggestion] = []
    moves: list[RefactorMove] = []

    if not has_src and len(root_files) > 5:
        suggestions.append(FolderSuggestion(folder="src", description="Main source code directory"))
        for item in root_files:
            lowered = item.path.lower()
            if _SOURCE_FILE_RE.search(item.path) and "test" not in lowered and "spec" not in lowered:
                moves.append(
                    RefactorMove(
                        from_path=item.path,
                        to_path=f"src/{item.path}",
                        reason="Organize source code into src/ directory",
                    )
                )

    if not has_tests:
        suggestions.append(FolderSuggestion(folder="tests", description="Test files directory"))
    if not has_docs:
        suggestions.append(FolderSuggestion(folder="docs", description="Documentation directory"))

    if moves:
        summary = f"Proposed {len(moves)} file moves to improve organization and follow best practices."
    else:
        summary = "Repository structure is already well-organized."

    return RefactorProposal(
        repo_name=repo_name,
        high_level_summary=summary,
        recommended_structure=suggestions,
        moves=moves[:MAX_MOVES],
        warnings=["Review moves carefully before applying"] if moves else [],
    )
