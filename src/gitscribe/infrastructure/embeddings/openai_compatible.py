"""OpenAI-compatible embeddings - POST {base_url}/embeddings (OpenAI, LM Studio, vLLM, Ollama)."""

import logging

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from gitscribe.domain.ports.config import EmbeddingsConfig, LLMConfig

logger = logging.getLogger(__name__)


class OpenAICompatibleEmbeddingsAdapter:
    """Implements EmbeddingsPort. Falls back to the [llm] endpoint when no embeddings endpoint is set."""

    def __init__(
        self,
        llm_config: LLMConfig,
        config: EmbeddingsConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._model = config.model
        self._base_url = (config.base_url or llm_config.base_url).rstrip("/")
        self._timeout = llm_config.timeout
        self._headers = {"Content-Type": "application/json"}
        api_key = config.api_key or llm_config.api_key
        if api_key:
            self._headers["Authorization"] = f"Bearer {api_key}"
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self._headers,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def embed(self, text: str) -> list[float]:
        vectors = await self.embed_batch([text])
        return vectors[0] if vectors else []

    @retry(
        retry=retry_if_exception_type((httpx.TimeoutException, httpx.NetworkError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """One vector per text, in input order. Missing vectors come back empty."""
        if not texts:
            return []
        resp = await self._get_client().post("/embeddings", json={"model": self._model, "input": texts})
        if resp.is_error:
            logger.error("Embedding API error %s: %s", resp.status_code, resp.text[:200])
        resp.raise_for_status()

        items = sorted(resp.json().get("data") or [], key=lambda item: item.get("index", 0))
        vectors = [item.get("embedding") or [] for item in items]
        if len(vectors) != len(texts):
            logger.warning("Embedding count mismatch: got %d, expected %d", len(vectors), len(texts))
            vectors = (vectors + [[] for _ in texts])[: len(texts)]
        return vectors
