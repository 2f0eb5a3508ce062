"""
Chains module initialization.

Exports prompts and answer generators.
"""

from .prompts import (
    NO_INFORMATION_ANSWER,
    SYSTEM_PROMPT,
    build_user_prompt
)

from .generator import (
    FALLBACK_ANSWER,
    AnswerGenerator,
    GeminiAnswerGenerator,
    create_answer_generator
)

__all__ = [
    "NO_INFORMATION_ANSWER",
    "SYSTEM_PROMPT",
    "build_user_prompt",
    "FALLBACK_ANSWER",
    "AnswerGenerator",
    "GeminiAnswerGenerator",
    "create_answer_generator"
]
