"""Dependency Injection Container - one place that builds adapters and use cases."""

from functools import cached_property
from typing import TYPE_CHECKING

from gitscribe.domain.ports.config import AppConfig
from gitscribe.infrastructure.config import load_config

if TYPE_CHECKING:
    from gitscribe.application.workflow.use_case import WorkflowUseCase
    from gitscribe.infrastructure.embeddings.openai_compatible import OpenAICompatibleEmbeddingsAdapter
    from gitscribe.infrastructure.github.rest_client import GitHubRestAdapter
    from gitscribe.infrastructure.llm.openai_compatible import OpenAICompatibleAdapter
    from gitscribe.infrastructure.rag.chromadb_adapter import ChromaDBRAGAdapter


class Container:
    """Services are built on first access and cached for the process lifetime.

    Usage:
        container = Container(config)
        response = await container.workflow_use_case.execute(request)
    """

    def __init__(self, config: AppConfig | None = None):
        self._config = config

    @cached_property
    def config(self) -> AppConfig:
        return self._config or load_config()

    @cached_property
    def llm(self) -> "OpenAICompatibleAdapter":
        from gitscribe.infrastructure.llm.openai_compatible import OpenAICompatibleAdapter

        return OpenAICompatibleAdapter(self.config.llm, default_model=self.config.workflow.default_model)

    @cached_property
    def github(self) -> "GitHubRestAdapter":
        from gitscribe.infrastructure.github.rest_client import GitHubRestAdapter

        return GitHubRestAdapter(self.config.github)

    @cached_property
    def embeddings(self) -> "OpenAICompatibleEmbeddingsAdapter":
        from gitscribe.infrastructure.embeddings.openai_compatible import OpenAICompatibleEmbeddingsAdapter

        return OpenAICompatibleEmbeddingsAdapter(self.config.llm, self.config.embeddings)

    @cached_property
    def rag(self) -> "ChromaDBRAGAdapter | None":
        """Code index, or None when [rag] is disabled."""
        if not self.config.rag.enabled:
            return None
        from gitscribe.infrastructure.rag.chromadb_adapter import ChromaDBRAGAdapter

        return ChromaDBRAGAdapter(self.config.rag, self.embeddings)

    @cached_property
    def workflow_use_case(self) -> "WorkflowUseCase":
        """Pipeline use case wired to the shared adapters."""
        from gitscribe.application.workflow.use_case import WorkflowUseCase

        return WorkflowUseCase(llm=self.llm, github=self.github, config=self.config, rag=self.rag)

    async def close(self) -> None:
        """Close HTTP clients of adapters that were built."""
        for name in ("llm", "github", "embeddings"):
            adapter = self.__dict__.get(name)
            if adapter is not None:
                await adapter.close()


_container: Container | None = None


def get_container() -> Container:
    """Process-wide container, built from the cached config."""
    global _container
    if _container is None:
        from gitscribe.api.dependencies import get_config

        _container = Container(get_config())
    return _container
