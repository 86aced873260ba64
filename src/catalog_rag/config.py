"""Centralized configuration for the product search pipeline."""

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EmbeddingConfig(BaseSettings):
    """Sentence-transformers embedding settings."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_", frozen=True)

    model_name: str = "all-MiniLM-L6-v2"
    device: str = "cpu"


class VectorStoreConfig(BaseSettings):
    """ChromaDB vector index settings."""

    model_config = SettingsConfigDict(env_prefix="VS_", frozen=True)

    db_path: str = "./chroma_db"
    host: str | None = None
    port: int = Field(default=8000, gt=0, le=65535)
    collection_name: str = "products"
    batch_size: int = Field(default=50, gt=0)
    search_limit: int = Field(default=5, gt=0)
    score_threshold: float = Field(default=0.3, ge=0.0, le=1.0)


class LLMConfig(BaseSettings):
    """Ollama language model settings."""

    model_config = SettingsConfigDict(env_prefix="LLM_", frozen=True)

    host: str = "http://localhost:11434"
    model: str = "llama3.2:1b"
    query_model: str = "llama3.2:3b"
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    top_p: float = Field(default=0.9, gt=0.0, le=1.0)
    max_tokens: int = Field(default=500, gt=0)
    query_max_tokens: int = Field(default=64, gt=0)
    timeout: float = Field(default=30.0, gt=0)
    probe_timeout: float = Field(default=5.0, gt=0)


class ContextConfig(BaseSettings):
    """Session context retention settings."""

    model_config = SettingsConfigDict(env_prefix="CONTEXT_", frozen=True)

    ttl_seconds: int = Field(default=600, gt=0)
    cleanup_seconds: int = Field(default=3600, gt=0)
    default_session: str = "default_session"

    @model_validator(mode="after")
    def _cleanup_not_shorter_than_ttl(self) -> "ContextConfig":
        if self.cleanup_seconds < self.ttl_seconds:
            msg = (
                f"cleanup_seconds ({self.cleanup_seconds}) must not be less than "
                f"ttl_seconds ({self.ttl_seconds})"
            )
            raise ValueError(msg)
        return self


class AppConfig(BaseSettings):
    """Top-level application configuration."""

    model_config = SettingsConfigDict(frozen=True)

    catalog_path: str = "./data/products.json"
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    context: ContextConfig = Field(default_factory=ContextConfig)
