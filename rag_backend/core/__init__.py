"""
Core business logic modules for the RAG backend.

This package contains the fundamental components:
- Chunking, input normalization, and near-duplicate detection
- Embedding client and rate limiting
- Document store implementations
- Hybrid retrieval and the answer cache
"""
