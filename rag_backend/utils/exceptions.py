"""
Custom exceptions for the RAG backend.

Provides specific exception types for different error scenarios.
"""

from typing import Optional


class RAGException(Exception):
    """Base exception for RAG backend errors."""
    pass


class ConfigurationError(RAGException):
    """Raised when configuration is invalid or missing."""
    pass


class ValidationError(RAGException):
    """Raised when a required input is missing or unusable."""
    pass


class EmbeddingError(RAGException):
    """Raised when embedding operations fail."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RateLimitError(EmbeddingError):
    """Raised when the embedding service answers with HTTP 429."""

    def __init__(self, message: str, status_code: int = 429):
        super().__init__(message, status_code=status_code)


class VectorStoreError(RAGException):
    """Raised when document store operations fail."""
    pass


class RetrievalError(RAGException):
    """Raised when retrieval operations fail."""
    pass


class GenerationError(RAGException):
    """Raised when text generation fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CacheError(RAGException):
    """Raised when answer cache operations fail."""
    pass


class APIKeyError(RAGException):
    """Raised when API keys are missing or invalid."""
    pass
