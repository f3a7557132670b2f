"""LLM Port - chat completion contract used by every LLM-backed stage."""

from typing import Literal, Protocol

from pydantic import BaseModel

Role = Literal["system", "user", "assistant"]


class LLMMessage(BaseModel):
    role: Role
    content: str


class LLMResponse(BaseModel):
    """One completed (non-streaming) answer."""

    content: str
    model: str
    finish_reason: str | None = None  # "stop", "length", ... when the provider reports it


class LLMPort(Protocol):
    """Chat-completion provider: OpenAI, OpenRouter, LM Studio, vLLM or a test double."""

    async def generate(
        self,
        messages: list[LLMMessage],
        model: str | None = None,
        temperature: float = 0.7,
    ) -> LLMResponse:
        ...

    async def is_available(self) -> bool:
        """True when the endpoint answers; never raises."""
        ...
