"""ASGI entry point: ``gitscribe.main:app``."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from gitscribe import __version__
from gitscribe.api.container import Container, get_container
from gitscribe.api.dependencies import limiter
from gitscribe.api.routes.workflow import router as workflow_router
from gitscribe.shared.logging import setup_logging

log = structlog.get_logger()


async def _health_payload(container: Container) -> dict:
    return {
        "status": "ok",
        "service": "gitscribe",
        "version": __version__,
        "llm_available": await container.llm.is_available(),
        "github_authenticated": container.github.is_authenticated,
    }


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = get_container()
    config = container.config
    setup_logging(
        level=config.log_level,
        file_path=config.log_file,
        rotation_max_mb=config.log_rotation_max_mb,
        rotation_backups=config.log_rotation_backups,
    )
    log.info(
        "startup_complete",
        version=__version__,
        llm_base_url=config.llm.base_url,
        default_model=config.workflow.default_model,
        github_authenticated=container.github.is_authenticated,
    )
    try:
        yield
    finally:
        await container.close()
        log.info("shutdown_complete")


def create_app() -> FastAPI:
    """Build the API: rate limiting, CORS from config, workflow routes and /health."""
    application = FastAPI(
        title="GitScribe",
        version=__version__,
        description="Agent pipeline that analyzes GitHub repositories and writes their documentation",
        lifespan=lifespan,
    )
    application.state.limiter = limiter
    application.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=get_container().config.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    application.include_router(workflow_router)

    @application.get("/health")
    @limiter.limit("100/minute")
    async def health(request: Request) -> dict:
        return await _health_payload(get_container())

    return application


app = create_app()
