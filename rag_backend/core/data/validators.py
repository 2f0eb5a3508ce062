"""
Chunk input validation and normalization.

Raw chunks are decoded once into a ``ChunkInput`` at the ingest boundary;
everything downstream only ever sees trimmed, non-empty strings.
"""

from typing import Any, Iterable, List, Mapping, Optional
from rag_backend.config.models import BinaryInput, ChunkInput, StructuredInput, TextInput
from rag_backend.utils.logging import get_logger
from rag_backend.utils.exceptions import ValidationError

logger = get_logger(__name__)


def _structured_text(raw: Any) -> Optional[str]:
    """Pull a string ``text`` or ``content`` field off an object or mapping."""
    for field in ("text", "content"):
        if isinstance(raw, Mapping):
            value = raw.get(field)
        else:
            value = getattr(raw, field, None)
        if isinstance(value, str):
            return value
    return None


def decode_chunk_input(raw: Any) -> Optional[ChunkInput]:
    """
    Decode a raw chunk into one of the accepted input shapes.

    Args:
        raw: A string, a UTF-8 byte buffer, or an object exposing ``text``/``content``

    Returns:
        The decoded input, or None when the value is not usable
    """
    if isinstance(raw, str):
        return TextInput(text=raw)

    if isinstance(raw, (bytes, bytearray, memoryview)):
        data = bytes(raw)
        try:
            data.decode("utf-8")
        except UnicodeDecodeError:
            return None
        return BinaryInput(data=data)

    text = _structured_text(raw)
    if text is not None:
        return StructuredInput(text=text)

    return None


def normalize_chunks(raw_chunks: Iterable[Any]) -> List[str]:
    """
    Normalize chunker output into trimmed, non-empty strings.

    Args:
        raw_chunks: Chunks in any accepted input shape

    Returns:
        List of usable chunk strings in the original order

    Raises:
        ValidationError: If no usable chunk remains
    """
    normalized = []
    dropped = 0

    for index, raw in enumerate(raw_chunks):
        decoded = decode_chunk_input(raw)
        if decoded is None:
            logger.warning(f"⚠️ Dropping chunk {index}: unsupported type {type(raw).__name__}")
            dropped += 1
            continue

        text = decoded.text.strip()
        if not text:
            logger.warning(f"⚠️ Dropping chunk {index}: empty after trimming")
            dropped += 1
            continue

        normalized.append(text)

    if not normalized:
        raise ValidationError("No valid chunks produced from input text")

    if dropped:
        logger.info(f"📊 Normalized {len(normalized)} chunks, dropped {dropped}")
    return normalized


def require_text(value: Any, field_name: str) -> str:
    """
    Validate a required, non-blank string field.

    Raises:
        ValidationError: If the value is missing, not a string, or blank
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f'"{field_name}" field is required')
    return value
