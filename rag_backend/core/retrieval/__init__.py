"""
Retrieval module initialization.

Exports keyword scoring and the hybrid retriever.
"""

from .keyword import (
    KeywordScorer,
    tokenize
)

from .hybrid import (
    HybridRetriever,
    build_context,
    merge_results,
    create_hybrid_retriever
)

__all__ = [
    "KeywordScorer",
    "tokenize",
    "HybridRetriever",
    "build_context",
    "merge_results",
    "create_hybrid_retriever"
]
