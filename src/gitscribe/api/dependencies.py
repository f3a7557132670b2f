"""FastAPI dependencies - config, rate limiter, use cases."""

from functools import lru_cache

from slowapi import Limiter
from slowapi.util import get_remote_address

from gitscribe.application.workflow.use_case import WorkflowUseCase
from gitscribe.domain.ports.config import AppConfig
from gitscribe.infrastructure.config import load_config

limiter = Limiter(key_func=get_remote_address)


@lru_cache
def get_config() -> AppConfig:
    """Load config once at startup."""
    return load_config()


def rate_limit() -> str:
    """Per-client limit for pipeline runs, from [security]."""
    return f"{get_config().security.rate_limit_requests_per_minute}/minute"


def get_workflow_use_case() -> WorkflowUseCase:
    """Shared WorkflowUseCase from the container."""
    from gitscribe.api.container import get_container

    return get_container().workflow_use_case
