"""
Text chunking utilities.

Splits raw text into bounded, overlapping windows of tokens, falling back
to word windows whenever the tokenizer is unavailable or misbehaves.
"""

from typing import Any, Callable, List, Optional, Sequence
import tiktoken
from rag_backend.utils.logging import get_logger
from rag_backend.utils.decorators import timing_decorator
from rag_backend.config.settings import DataConfig, get_config

logger = get_logger(__name__)

MIN_CHUNK_SIZE = 10


def sliding_windows(items: Sequence[Any], chunk_size: int, overlap: int) -> List[Sequence[Any]]:
    """
    Cut ``items`` into windows of ``chunk_size`` advancing by ``chunk_size - overlap``.

    The last window always ends at the last item; no trailing window is
    produced once the end has been reached.
    """
    windows = []
    step = chunk_size - overlap
    start = 0
    while start < len(items):
        end = min(len(items), start + chunk_size)
        windows.append(items[start:end])
        if end == len(items):
            break
        start += step
    return windows


def decode_utf8_window(data: bytes) -> str:
    """
    Decode a token window's bytes, dropping characters cut by the window edges.

    A window can start in the middle of a multi-byte character (leading
    continuation bytes) or stop before one is complete; both partial
    sequences are trimmed instead of becoming U+FFFD.
    """
    data = bytes(data)
    start = 0
    while start < len(data) and 0x80 <= data[start] <= 0xBF:
        start += 1

    end = len(data)
    for back in range(1, min(4, end - start) + 1):
        byte = data[end - back]
        if byte < 0x80:
            break
        if byte >= 0xC0:
            needed = 2 if byte < 0xE0 else 3 if byte < 0xF0 else 4
            if back < needed:
                end -= back
            break

    return data[start:end].decode("utf-8")


class TextChunker:
    """Token-window chunker with a word-window fallback."""

    def __init__(
        self,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        model_name: Optional[str] = None,
        encoding_loader: Optional[Callable[[str], Any]] = None
    ):
        """
        Initialize the chunker.

        Args:
            chunk_size: Window size in tokens (words on the fallback path)
            chunk_overlap: Items shared by consecutive windows
            model_name: Model whose tokenizer is used
            encoding_loader: Callable returning an encoder for ``model_name``
        """
        config = get_config()
        chunk_size = config.data.chunk_size if chunk_size is None else chunk_size
        chunk_overlap = config.data.chunk_overlap if chunk_overlap is None else chunk_overlap

        self.chunk_size = max(MIN_CHUNK_SIZE, int(chunk_size))
        self.chunk_overlap = max(0, min(int(chunk_overlap), self.chunk_size - 1))
        self.model_name = model_name or config.data.tokenizer_model
        self.encoding_loader = encoding_loader or tiktoken.encoding_for_model

    @timing_decorator
    def chunk(self, text: Any) -> List[str]:
        """
        Split text into overlapping chunks in source order.

        Args:
            text: Raw text to split

        Returns:
            List of chunk strings; empty for empty, blank, or non-string input
        """
        if not isinstance(text, str) or not text.strip():
            return []

        try:
            chunks = self._chunk_tokens(text)
            if chunks:
                logger.info(f"✂️ Created {len(chunks)} token chunks "
                            f"(size={self.chunk_size}, overlap={self.chunk_overlap})")
                return chunks
        except Exception as e:
            logger.warning(f"⚠️ Tokenizer failed, falling back to word chunking: {str(e)}")

        chunks = self._chunk_words(text)
        logger.info(f"✂️ Created {len(chunks)} word chunks "
                    f"(size={self.chunk_size}, overlap={self.chunk_overlap})")
        return chunks

    def _chunk_tokens(self, text: str) -> List[str]:
        """Token-window path; raises on any tokenizer problem."""
        encoder = self.encoding_loader(self.model_name)
        tokens = encoder.encode(text, disallowed_special=())

        chunks = []
        for window in sliding_windows(tokens, self.chunk_size, self.chunk_overlap):
            if hasattr(encoder, "decode_bytes"):
                decoded = decode_utf8_window(encoder.decode_bytes(list(window)))
            else:
                decoded = encoder.decode(list(window))
            if not decoded:
                raise ValueError("tokenizer returned an empty window")
            chunks.append(decoded)
        return chunks

    def _chunk_words(self, text: str) -> List[str]:
        """Whitespace-word path; never raises."""
        words = text.split()
        return [" ".join(window) for window in sliding_windows(words, self.chunk_size, self.chunk_overlap)]


def create_text_chunker(settings: Optional[DataConfig] = None) -> TextChunker:
    """
    Create a chunker from configuration.

    Args:
        settings: Chunking configuration (defaults to global config)

    Returns:
        Text chunker instance
    """
    settings = settings or get_config().data
    return TextChunker(
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        model_name=settings.tokenizer_model,
    )
