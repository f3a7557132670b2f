"""OpenAI-compatible adapter - OpenAI, OpenRouter, LM Studio, vLLM."""

import logging

import httpx

from gitscribe.domain.ports.config import LLMConfig
from gitscribe.domain.ports.llm import LLMMessage, LLMResponse

logger = logging.getLogger(__name__)

AVAILABILITY_TIMEOUT = 5.0


class OpenAICompatibleAdapter:
    """Implements LLMPort over POST {base_url}/chat/completions.

    The HTTP client is created on first use and reused; close() releases it.
    A transport can be injected (httpx.MockTransport in tests).
    """

    def __init__(
        self,
        config: LLMConfig,
        default_model: str = "gpt-4o-mini",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._default_model = default_model
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._config.api_key:
            headers["Authorization"] = f"Bearer {self._config.api_key}"
        return headers

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url.rstrip("/"),
                timeout=self._config.timeout,
                headers=self._headers(),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def generate(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """Single non-streaming completion. HTTP errors raise httpx.HTTPStatusError."""
        model = model or self._default_model
        payload: dict = {
            "model": model,
            "messages": [m.model_dump() for m in messages],
            "temperature": temperature,
            "stream": False,
        }
        if self._config.max_tokens is not None:
            payload["max_tokens"] = self._config.max_tokens

        resp = await self._get_client().post("/chat/completions", json=payload)
        if resp.is_error:
            logger.error("LLM API error %s for model %s: %s", resp.status_code, model, resp.text[:500])
        resp.raise_for_status()

        data = resp.json()
        choices = data.get("choices") or [{}]
        message = choices[0].get("message") or {}
        return LLMResponse(
            content=message.get("content") or "",
            model=data.get("model") or model,
            finish_reason=choices[0].get("finish_reason"),
        )

    async def is_available(self) -> bool:
        try:
            resp = await self._get_client().get("/models", timeout=AVAILABILITY_TIMEOUT)
        except httpx.HTTPError as e:
            logger.debug("LLM availability check failed: %s", e)
            return False
        return resp.status_code == 200
