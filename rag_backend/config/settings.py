"""
Environment settings and configuration management.

Provides centralized configuration using Pydantic settings models
for type safety and validation.
"""

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
from rag_backend.utils.exceptions import APIKeyError

# Load environment variables
load_dotenv()


DEFAULT_AMBIGUOUS_PHRASES = [
    "i don't have that specific information",
    "could not generate an answer",
    "i don't know",
    "unsure",
]

DEFAULT_STANDARD_ANSWERS = [
    "hello! i'm the csec dev division assistant",
    "i'm the csec dev division assistant",
    "other divisions don't have an information bot yet",
]


class DatabaseConfig(BaseSettings):
    """Document store configuration settings."""

    backend: str = Field(default="memory")
    qdrant_url: str = Field(default="http://localhost:6333")
    qdrant_api_key: Optional[str] = Field(default=None)
    chunk_collection: str = Field(default="rag_chunks")
    cache_collection: str = Field(default="rag_answer_cache")
    vector_size: int = Field(default=1024)
    scroll_batch_size: int = Field(default=256)

    model_config = SettingsConfigDict(env_prefix="DATABASE_", extra="ignore")


class EmbeddingConfig(BaseSettings):
    """Embedding service configuration."""

    api_url: str = Field(default="https://api.voyageai.com/v1/embeddings")
    api_key: Optional[str] = Field(default=None)
    model_name: str = Field(default="voyage-3-large")
    batch_size: int = Field(default=128)
    min_request_interval: float = Field(default=20.0)
    max_attempts: int = Field(default=3)
    backoff_base: float = Field(default=1.0)
    backoff_max: float = Field(default=10.0)
    timeout: float = Field(default=60.0)

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_", extra="ignore", protected_namespaces=())


class LLMConfig(BaseSettings):
    """Generative language model configuration."""

    api_key: Optional[str] = Field(default=None)
    base_url: str = Field(default="https://generativelanguage.googleapis.com/v1beta")
    model_name: str = Field(default="gemini-2.5-flash")
    timeout: float = Field(default=120.0)

    model_config = SettingsConfigDict(env_prefix="LLM_", extra="ignore", protected_namespaces=())


class DataConfig(BaseSettings):
    """Chunking configuration."""

    chunk_size: int = Field(default=200)
    chunk_overlap: int = Field(default=100)
    tokenizer_model: str = Field(default="gpt-3.5-turbo")

    model_config = SettingsConfigDict(env_prefix="DATA_", extra="ignore")


class DedupConfig(BaseSettings):
    """Near-duplicate detection configuration."""

    similarity_threshold: float = Field(default=0.90)
    limit: int = Field(default=3)
    num_candidates: int = Field(default=100)

    model_config = SettingsConfigDict(env_prefix="DEDUP_", extra="ignore")


class RetrievalConfig(BaseSettings):
    """Hybrid retrieval configuration."""

    vector_limit: int = Field(default=50)
    keyword_limit: int = Field(default=50)
    top_k: int = Field(default=5)
    keyword_boost: float = Field(default=2.0)
    num_candidates: int = Field(default=100)
    context_separator: str = Field(default="\n---\n")

    model_config = SettingsConfigDict(env_prefix="RETRIEVAL_", extra="ignore")


class CacheConfig(BaseSettings):
    """Answer cache configuration."""

    enabled: bool = Field(default=True)
    mode: str = Field(default="semantic")
    similarity_threshold: float = Field(default=0.93)
    ttl_seconds: int = Field(default=24 * 60 * 60)
    confidence_threshold: float = Field(default=0.85)
    invalidate_on_ingest: bool = Field(default=True)
    ambiguous_phrases: List[str] = Field(default_factory=lambda: list(DEFAULT_AMBIGUOUS_PHRASES))
    standard_answers: List[str] = Field(default_factory=lambda: list(DEFAULT_STANDARD_ANSWERS))

    model_config = SettingsConfigDict(env_prefix="CACHE_", extra="ignore")


class LoggingConfig(BaseSettings):
    """Logging configuration."""

    level: str = Field(default="INFO")
    format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    file_path: Optional[str] = Field(default=None)
    library_level: str = Field(default="WARNING")

    model_config = SettingsConfigDict(env_prefix="LOG_", extra="ignore")


class RAGConfig(BaseSettings):
    """Main RAG system configuration."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    data: DataConfig = Field(default_factory=DataConfig)
    dedup: DedupConfig = Field(default_factory=DedupConfig)
    retrieval: RetrievalConfig = Field(default_factory=RetrievalConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields from .env
    )


# Global configuration instance
config = RAGConfig()


def get_config() -> RAGConfig:
    """Get the global configuration instance."""
    return config


def validate_api_keys(rag_config: Optional[RAGConfig] = None) -> None:
    """
    Validate that required API keys are present.

    Raises:
        APIKeyError: If a required key is missing
    """
    rag_config = rag_config or config
    required_keys = {
        "EMBEDDING_API_KEY": rag_config.embedding.api_key,
        "LLM_API_KEY": rag_config.llm.api_key,
    }
    missing_keys = [name for name, value in required_keys.items() if not value]

    if missing_keys:
        raise APIKeyError(f"Missing required API keys: {', '.join(missing_keys)}")
