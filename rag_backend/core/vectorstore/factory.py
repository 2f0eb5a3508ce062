"""
Document store factory.
"""

from typing import Optional
from rag_backend.config.settings import RAGConfig, get_config
from rag_backend.core.vectorstore.base import DocumentStore
from rag_backend.core.vectorstore.memory_store import InMemoryDocumentStore
from rag_backend.core.vectorstore.qdrant_client import QdrantDocumentStore
from rag_backend.utils.exceptions import ConfigurationError


def create_document_store(config: Optional[RAGConfig] = None) -> DocumentStore:
    """
    Create the configured document store.

    Args:
        config: RAG configuration (defaults to global config)

    Returns:
        Document store instance

    Raises:
        ConfigurationError: If the backend name is not supported
    """
    config = config or get_config()
    backend = config.database.backend.lower()

    if backend == "memory":
        return InMemoryDocumentStore(cache_ttl_seconds=config.cache.ttl_seconds)
    if backend == "qdrant":
        return QdrantDocumentStore(settings=config.database, cache_ttl_seconds=config.cache.ttl_seconds)

    raise ConfigurationError(f"Unsupported document store backend: {config.database.backend}")
