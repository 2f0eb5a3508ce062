"""
Document store module initialization.

Exports the store interface, its implementations, and the factory.
"""

from .base import DocumentStore, ScoredChunk, StoredChunk
from .memory_store import InMemoryDocumentStore
from .qdrant_client import QdrantDocumentStore
from .factory import create_document_store

__all__ = [
    "DocumentStore",
    "ScoredChunk",
    "StoredChunk",
    "InMemoryDocumentStore",
    "QdrantDocumentStore",
    "create_document_store"
]
