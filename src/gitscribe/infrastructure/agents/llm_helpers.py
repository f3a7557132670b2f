"""LLM helpers: retry wrapper, single-prompt completion and JSON extraction."""

import json
import re
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from gitscribe.domain.ports.llm import LLMMessage, LLMPort, LLMResponse

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```")
_EMBEDDED_JSON_RE = re.compile(r"\{[\s\S]*\}")
_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?|\n?```\s*$")


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type(
        (TimeoutError, ConnectionError, OSError, httpx.TimeoutException, httpx.ConnectError)
    ),
    reraise=True,
)
async def _generate_impl(
    llm: LLMPort,
    messages: list[LLMMessage],
    model: str,
    temperature: float,
) -> LLMResponse:
    """Internal: generate with retry."""
    return await llm.generate(
        messages=messages,
        model=model,
        temperature=temperature,
    )


async def generate_with_retry(
    llm: LLMPort,
    messages: list[LLMMessage],
    model: str,
    temperature: float = 0.7,
) -> LLMResponse:
    """Generate with retry on timeout/connection errors."""
    return await _generate_impl(llm, messages, model, temperature)


async def complete(
    llm: LLMPort,
    prompt: str,
    system_prompt: str,
    model: str,
    temperature: float = 0.7,
) -> str:
    """Single system+user exchange; returns the response text."""
    messages = [
        LLMMessage(role="system", content=system_prompt),
        LLMMessage(role="user", content=prompt),
    ]
    response = await generate_with_retry(llm, messages, model, temperature)
    return response.content or ""


def parse_json_response(response: str) -> dict[str, Any] | None:
    """Extract a JSON object from bare, fenced or prose-embedded LLM output.

    Returns None when nothing parses to a dict.
    """
    if not response or not response.strip():
        return None
    candidates: list[str] = []
    match = _FENCED_JSON_RE.search(response)
    if match:
        candidates.append(match.group(1))
    candidates.append(response.strip())
    embedded = _EMBEDDED_JSON_RE.search(response)
    if embedded:
        candidates.append(embedded.group(0))
    for raw in candidates:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            continue
        if isinstance(data, dict):
            return data
    return None


def strip_code_fence(text: str) -> str:
    """Remove a surrounding ``` fence (with optional language tag)."""
    return _FENCE_RE.sub("", text.strip()).strip()
