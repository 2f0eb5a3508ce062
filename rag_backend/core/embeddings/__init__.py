"""
Embedding module initialization.

Exports the embedding provider interface, the remote client, and the rate limiter.
"""

from .providers import (
    EmbeddingProvider,
    RemoteEmbeddingClient,
    create_embedding_client
)

from .rate_limiter import RateLimiter

__all__ = [
    "EmbeddingProvider",
    "RemoteEmbeddingClient",
    "create_embedding_client",
    "RateLimiter"
]
