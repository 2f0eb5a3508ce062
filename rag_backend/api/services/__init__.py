"""
API services module initialization.

Exports all service classes.
"""

from .rag_service import RAGService, rag_service

__all__ = [
    "RAGService",
    "rag_service"
]
