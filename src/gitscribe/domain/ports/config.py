"""Config Port - application configuration models."""

from pydantic import BaseModel, ConfigDict

from gitscribe.domain.entities.documentation import (
    DocLanguage,
    DocOutputFormat,
    DocSectionType,
)


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = "0.0.0.0"
    port: int = 8000


class LLMConfig(BaseModel):
    """OpenAI-compatible chat completions endpoint (OpenAI, OpenRouter, LM Studio, vLLM)."""

    base_url: str = "https://api.openai.com/v1"
    api_key: str = ""
    timeout: int = 120
    # Optional: max tokens to generate. None = server/model default.
    max_tokens: int | None = None


class GitHubConfig(BaseModel):
    """GitHub REST API access."""

    api_url: str = "https://api.github.com"
    token: str = ""
    timeout: int = 30


class WorkflowConfig(BaseModel):
    """Pipeline defaults, applied when a request leaves a field empty."""

    max_iterations: int = 20
    default_model: str = "gpt-4o-mini"
    default_language: DocLanguage = DocLanguage.EN
    default_output_formats: list[DocOutputFormat] = [DocOutputFormat.MARKDOWN]
    default_section_types: list[DocSectionType] = [DocSectionType.README]

    model_config = ConfigDict(extra="ignore")


class EmbeddingsConfig(BaseModel):
    """Embeddings endpoint. Empty base_url and api_key reuse the [llm] endpoint."""

    model: str = "text-embedding-3-small"
    base_url: str = ""
    api_key: str = ""


class RAGConfig(BaseModel):
    """Repository code index (ChromaDB) used by the analysis and writing stages."""

    enabled: bool = True
    chromadb_path: str = "output/chromadb"
    collection_prefix: str = "gitscribe"
    chunk_size: int = 1000
    chunk_overlap: int = 200
    batch_size: int = 64  # texts per embedding request
    max_files: int = 50  # code files indexed per repository
    max_depth: int = 3
    top_k: int = 8


class SecurityConfig(BaseModel):
    """Security settings."""

    rate_limit_requests_per_minute: int = 100
    cors_origins: list[str] = ["http://localhost:5173"]


class AppConfig(BaseModel):
    """Full application configuration."""

    server: ServerConfig = ServerConfig()
    llm: LLMConfig = LLMConfig()
    github: GitHubConfig = GitHubConfig()
    workflow: WorkflowConfig = WorkflowConfig()
    embeddings: EmbeddingsConfig = EmbeddingsConfig()
    rag: RAGConfig = RAGConfig()
    security: SecurityConfig = SecurityConfig()
    log_level: str = "INFO"
    log_file: str = ""  # Empty = stdout only
    log_rotation_max_mb: int = 5
    log_rotation_backups: int = 3
