"""
Retrieval-augmented answer backend.

Indexes free text as embedded chunks and answers questions from them:
- Token-window chunking with a word-window fallback
- Near-duplicate supersession on ingest
- Hybrid vector + BM25 keyword retrieval
- Two-tier (exact + semantic) answer cache with TTL
"""

__version__ = "1.0.0"
