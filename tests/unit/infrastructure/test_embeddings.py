"""Tests for the OpenAI-compatible embeddings adapter."""

import json

import httpx
import pytest

from gitscribe.domain.ports.config import EmbeddingsConfig, LLMConfig
from gitscribe.infrastructure.embeddings.openai_compatible import OpenAICompatibleEmbeddingsAdapter


def make_adapter(handler, llm: LLMConfig | None = None, **config) -> OpenAICompatibleEmbeddingsAdapter:
    llm = llm or LLMConfig(base_url="http://llm.test/v1", api_key="sk-llm")
    return OpenAICompatibleEmbeddingsAdapter(llm, EmbeddingsConfig(**config), transport=httpx.MockTransport(handler))


class TestOpenAICompatibleEmbeddingsAdapter:
    """Tests for OpenAICompatibleEmbeddingsAdapter."""

    @pytest.mark.asyncio
    async def test_embed_batch_orders_by_index(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"data": [{"index": 1, "embedding": [0.3, 0.4]}, {"index": 0, "embedding": [0.1, 0.2]}]},
            )

        adapter = make_adapter(handler, model="embed-small")
        result = await adapter.embed_batch(["first", "second"])
        await adapter.close()

        assert result == [[0.1, 0.2], [0.3, 0.4]]
        assert seen["body"] == {"model": "embed-small", "input": ["first", "second"]}

    @pytest.mark.asyncio
    async def test_falls_back_to_llm_endpoint(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"data": [{"index": 0, "embedding": [1.0]}]})

        adapter = make_adapter(handler)
        assert await adapter.embed("hello") == [1.0]
        await adapter.close()

        assert seen["url"] == "http://llm.test/v1/embeddings"
        assert seen["auth"] == "Bearer sk-llm"

    @pytest.mark.asyncio
    async def test_own_endpoint_wins(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers.get("authorization")
            return httpx.Response(200, json={"data": [{"index": 0, "embedding": [1.0]}]})

        adapter = make_adapter(handler, base_url="http://embed.test/v1/", api_key="sk-embed")
        await adapter.embed("hello")
        await adapter.close()

        assert seen["url"] == "http://embed.test/v1/embeddings"
        assert seen["auth"] == "Bearer sk-embed"

    @pytest.mark.asyncio
    async def test_missing_vectors_are_padded(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": [{"index": 0, "embedding": [0.5]}]})

        adapter = make_adapter(handler)
        result = await adapter.embed_batch(["a", "b", "c"])
        await adapter.close()

        assert result == [[0.5], [], []]

    @pytest.mark.asyncio
    async def test_empty_input_sends_nothing(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        adapter = make_adapter(handler)
        assert await adapter.embed_batch([]) == []

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": "bad key"})

        adapter = make_adapter(handler)
        with pytest.raises(httpx.HTTPStatusError):
            await adapter.embed_batch(["a"])
        await adapter.close()
