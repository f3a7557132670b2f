"""Embeddings Port - text to vectors for retrieval."""

from typing import Protocol


class EmbeddingsPort(Protocol):
    """Interface for embedding providers."""

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts. One vector per input, in input order."""
        ...
