"""RAG Port - per-repository code index used to ground generated documentation."""

from typing import Protocol

from pydantic import BaseModel, Field


class Chunk(BaseModel):
    """A retrieved piece of repository source."""

    content: str
    metadata: dict = Field(default_factory=dict)  # repo, source (file path), chunk index
    score: float = 1.0


class RAGPort(Protocol):
    """Interface for vector stores (ChromaDB, fakes in tests)."""

    async def index_repository(self, repo_key: str, files: list[tuple[str, str]]) -> int:
        """Replace the index of one repository with (path, content) files. Returns chunks stored."""
        ...

    async def search(self, query: str, repo_key: str, limit: int = 8) -> list[Chunk]:
        """Most relevant chunks of one repository, best first."""
        ...
