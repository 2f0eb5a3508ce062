"""
Core system module initialization.

Exports the main RAG system components.
"""

from .rag_system import IngestResult, QueryResult, RAGSystem, create_rag_system

__all__ = [
    "IngestResult",
    "QueryResult",
    "RAGSystem",
    "create_rag_system"
]
