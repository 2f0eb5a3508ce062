"""
Answer cache module initialization.
"""

from .classifier import (
    AnswerClass,
    AnswerClassifier,
    SubstringAnswerClassifier
)

from .answer_cache import (
    AnswerCache,
    CacheLookup,
    create_answer_cache
)

__all__ = [
    "AnswerClass",
    "AnswerClassifier",
    "SubstringAnswerClassifier",
    "AnswerCache",
    "CacheLookup",
    "create_answer_cache"
]
