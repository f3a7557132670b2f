"""TOML configuration loader with env overrides."""

import logging
import os
import tomllib
from pathlib import Path

from gitscribe.domain.ports.config import (
    AppConfig,
    EmbeddingsConfig,
    GitHubConfig,
    LLMConfig,
    RAGConfig,
    SecurityConfig,
    ServerConfig,
    WorkflowConfig,
)

logger = logging.getLogger(__name__)


def _load_toml(path: Path) -> dict:
    """Load TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _int_env(config: dict, section: str, key: str, name: str) -> None:
    if value := os.getenv(name):
        try:
            config.setdefault(section, {})[key] = int(value)
        except ValueError:
            logger.warning("Invalid %s env value: %r, ignoring", name, value)


def _apply_env_overrides(config: dict) -> dict:
    """Apply environment variable overrides."""
    if base_url := os.getenv("OPENAI_BASE_URL"):
        config.setdefault("llm", {})["base_url"] = base_url
    if api_key := os.getenv("OPENAI_API_KEY"):
        config.setdefault("llm", {})["api_key"] = api_key.strip()
    if token := os.getenv("GITHUB_TOKEN"):
        config.setdefault("github", {})["token"] = token.strip()
    if api_url := os.getenv("GITHUB_API_URL"):
        config.setdefault("github", {})["api_url"] = api_url.strip()
    _int_env(config, "server", "port", "PORT")
    if level := os.getenv("LOG_LEVEL"):
        config.setdefault("logging", {})["level"] = level.upper()
    if path := os.getenv("LOG_FILE"):
        config.setdefault("logging", {})["file"] = path.strip()
    if origins := os.getenv("CORS_ORIGINS"):
        config.setdefault("security", {})["cors_origins"] = [o.strip() for o in origins.split(",")]
    _int_env(config, "security", "rate_limit_requests_per_minute", "RATE_LIMIT_PER_MINUTE")
    _int_env(config, "workflow", "max_iterations", "WORKFLOW_MAX_ITERATIONS")
    if model := os.getenv("DEFAULT_MODEL"):
        config.setdefault("workflow", {})["default_model"] = model.strip()
    if model := os.getenv("EMBEDDINGS_MODEL"):
        config.setdefault("embeddings", {})["model"] = model.strip()
    if path := os.getenv("CHROMADB_PATH"):
        config.setdefault("rag", {})["chromadb_path"] = path.strip()
    if enabled := os.getenv("RAG_ENABLED"):
        config.setdefault("rag", {})["enabled"] = enabled.strip().lower() in ("1", "true", "yes")
    return config


def load_config(config_dir: Path | None = None) -> AppConfig:
    """Load configuration from TOML files with env overrides.

    Loads default.toml, then development.toml if exists (merged per table).
    """
    if config_dir is None:
        config_dir = Path(__file__).resolve().parents[4] / "config"

    config: dict = {}

    default_path = config_dir / "default.toml"
    if default_path.exists():
        config = _load_toml(default_path)

    dev_path = config_dir / "development.toml"
    if dev_path.exists():
        dev_config = _load_toml(dev_path)
        for key, value in dev_config.items():
            if isinstance(value, dict) and key in config and isinstance(config[key], dict):
                config[key] = {**config[key], **value}
            else:
                config[key] = value

    config = _apply_env_overrides(config)

    logging_raw = config.get("logging") or {}
    return AppConfig(
        server=ServerConfig(**(config.get("server") or {})),
        llm=LLMConfig(**(config.get("llm") or {})),
        github=GitHubConfig(**(config.get("github") or {})),
        workflow=WorkflowConfig(**(config.get("workflow") or {})),
        embeddings=EmbeddingsConfig(**(config.get("embeddings") or {})),
        rag=RAGConfig(**(config.get("rag") or {})),
        security=SecurityConfig(**(config.get("security") or {})),
        log_level=logging_raw.get("level", "INFO"),
        log_file=(logging_raw.get("file") or "").strip(),
        log_rotation_max_mb=int(logging_raw.get("log_rotation_max_mb", 5)),
        log_rotation_backups=int(logging_raw.get("log_rotation_backups", 3)),
    )
