"""
Data processing module initialization.

Exports chunking, input normalization and deduplication.
"""

from .processors import (
    TextChunker,
    create_text_chunker,
    sliding_windows
)

from .validators import (
    decode_chunk_input,
    normalize_chunks,
    require_text
)

from .deduplication import (
    DedupOutcome,
    DeduplicationEngine,
    create_deduplication_engine
)

__all__ = [
    # Processors
    "TextChunker",
    "create_text_chunker",
    "sliding_windows",

    # Validators
    "decode_chunk_input",
    "normalize_chunks",
    "require_text",

    # Deduplication
    "DedupOutcome",
    "DeduplicationEngine",
    "create_deduplication_engine"
]
