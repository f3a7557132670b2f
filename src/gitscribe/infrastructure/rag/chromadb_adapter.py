"""ChromaDB RAG adapter - implements RAGPort with one collection per repository."""

import hashlib
import logging
import re
from pathlib import Path

import chromadb
from chromadb.config import Settings

from gitscribe.domain.ports.config import RAGConfig
from gitscribe.domain.ports.embeddings import EmbeddingsPort
from gitscribe.domain.ports.rag import Chunk
from gitscribe.infrastructure.rag.chunking import chunk_text

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(r"[^a-zA-Z0-9_-]+")


def collection_name(prefix: str, repo_key: str) -> str:
    """Valid ChromaDB collection name (3-63 chars, alphanumeric ends) for a repository."""
    slug = _UNSAFE_NAME_CHARS.sub("-", repo_key.replace("/", "--")).strip("-_")
    digest = hashlib.sha1(repo_key.encode()).hexdigest()[:8]
    return f"{prefix}-{slug}"[:54].rstrip("-_") + f"-{digest}"


class ChromaDBRAGAdapter:
    """Persistent ChromaDB store. Chunks carry repo, source path and chunk index metadata."""

    def __init__(self, config: RAGConfig, embeddings: EmbeddingsPort) -> None:
        self._config = config
        self._embeddings = embeddings
        path = Path(config.chromadb_path).resolve()
        path.mkdir(parents=True, exist_ok=True)
        self._client = chromadb.PersistentClient(path=str(path), settings=Settings(anonymized_telemetry=False))

    def _collection(self, repo_key: str):
        return self._client.get_or_create_collection(
            name=collection_name(self._config.collection_prefix, repo_key),
            metadata={"hnsw:space": "cosine", "repo": repo_key},
        )

    def _drop(self, repo_key: str) -> None:
        name = collection_name(self._config.collection_prefix, repo_key)
        try:
            self._client.delete_collection(name)
        except Exception as e:
            logger.debug("No previous index for %s: %s", repo_key, e)

    async def index_repository(self, repo_key: str, files: list[tuple[str, str]]) -> int:
        """Replace the repository's index. Batches whose embedding fails are skipped."""
        self._drop(repo_key)
        collection = self._collection(repo_key)

        documents: list[str] = []
        ids: list[str] = []
        metadatas: list[dict] = []
        for path, content in files:
            for j, piece in enumerate(chunk_text(content, self._config.chunk_size, self._config.chunk_overlap)):
                documents.append(piece)
                ids.append(hashlib.sha256(f"{repo_key}:{path}:{j}".encode()).hexdigest()[:16])
                metadatas.append({"repo": repo_key, "source": path, "chunk": j})
        if not documents:
            logger.info("Nothing to index for %s", repo_key)
            return 0

        stored = 0
        batch_size = max(1, self._config.batch_size)
        for start in range(0, len(documents), batch_size):
            batch = slice(start, start + batch_size)
            try:
                vectors = await self._embeddings.embed_batch(documents[batch])
            except Exception as e:
                logger.error("Embedding batch %d for %s failed: %s", start // batch_size + 1, repo_key, e)
                continue
            keep = [i for i, vector in enumerate(vectors) if vector]
            if not keep:
                continue
            collection.upsert(
                ids=[ids[batch][i] for i in keep],
                documents=[documents[batch][i] for i in keep],
                embeddings=[vectors[i] for i in keep],
                metadatas=[metadatas[batch][i] for i in keep],
            )
            stored += len(keep)

        logger.info("Indexed %d chunks from %d files for %s", stored, len(files), repo_key)
        return stored

    async def search(self, query: str, repo_key: str, limit: int = 8, min_score: float = 0.3) -> list[Chunk]:
        """Cosine-ranked chunks of one repository. Score is 1 - distance/2, clamped to [0, 1]."""
        if not query.strip():
            return []
        collection = self._collection(repo_key)
        count = collection.count()
        if count == 0:
            return []

        embedding = await self._embeddings.embed(query.strip())
        if not embedding:
            logger.warning("Empty query embedding for %s", repo_key)
            return []
        result = collection.query(
            query_embeddings=[embedding],
            n_results=min(limit, count),
            include=["documents", "metadatas", "distances"],
        )

        documents = (result.get("documents") or [[]])[0] or []
        metadatas = (result.get("metadatas") or [[]])[0] or []
        distances = (result.get("distances") or [[]])[0] or []
        chunks: list[Chunk] = []
        for i, document in enumerate(documents):
            if not document:
                continue
            distance = distances[i] if i < len(distances) else None
            score = 1.0 if distance is None else max(0.0, min(1.0, 1 - distance / 2))
            if score < min_score:
                continue
            meta = metadatas[i] if i < len(metadatas) else None
            chunks.append(Chunk(content=document, metadata=dict(meta or {}), score=score))
        return chunks
