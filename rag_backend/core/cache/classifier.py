"""
Answer classification for cache admission.

Answers that only say the model could not help are AMBIGUOUS and never
cached; everything else is NORMAL.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Iterable, Optional
from rag_backend.config.settings import DEFAULT_AMBIGUOUS_PHRASES


class AnswerClass(str, Enum):
    AMBIGUOUS = "ambiguous"
    NORMAL = "normal"


def normalize_answer(text: str) -> str:
    """Lower-case and straighten curly apostrophes."""
    return text.replace("’", "'").replace("‘", "'").lower()


class AnswerClassifier(ABC):
    """Decides whether a generated answer is worth caching."""

    @abstractmethod
    def classify(self, text: str) -> AnswerClass:
        pass


class SubstringAnswerClassifier(AnswerClassifier):
    """Flags answers containing any of a fixed set of phrases."""

    def __init__(self, phrases: Optional[Iterable[str]] = None):
        self.phrases = [normalize_answer(p) for p in (phrases or DEFAULT_AMBIGUOUS_PHRASES) if p]

    def classify(self, text: str) -> AnswerClass:
        normalized = normalize_answer(text or "")
        if not normalized.strip():
            return AnswerClass.AMBIGUOUS
        if any(phrase in normalized for phrase in self.phrases):
            return AnswerClass.AMBIGUOUS
        return AnswerClass.NORMAL
