"""
Answer generation against a hosted language model.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
import httpx
from rag_backend.config.settings import LLMConfig, get_config
from rag_backend.utils.logging import get_logger
from rag_backend.utils.exceptions import APIKeyError, GenerationError
from rag_backend.utils.decorators import timing_decorator

logger = get_logger(__name__)

FALLBACK_ANSWER = "Could not generate an answer from the language model."


class AnswerGenerator(ABC):
    """Abstract base class for answer generators."""

    @abstractmethod
    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        """
        Generate an answer.

        Args:
            system_prompt: Behavioural instructions
            user_prompt: Context and question

        Returns:
            Answer text

        Raises:
            GenerationError: If the model call fails
        """
        pass

    async def aclose(self) -> None:
        return None


def extract_answer(result: Dict[str, Any]) -> Optional[str]:
    """First text part of the first candidate, if any."""
    candidates = result.get("candidates") or []
    if not candidates:
        return None
    parts = (candidates[0].get("content") or {}).get("parts") or []
    if not parts:
        return None
    text = parts[0].get("text")
    return text if isinstance(text, str) and text else None


class GeminiAnswerGenerator(AnswerGenerator):
    """Generator backed by the Gemini ``generateContent`` endpoint."""

    def __init__(
        self,
        settings: Optional[LLMConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize Gemini generator.

        Args:
            settings: LLM configuration (defaults to global config)
            http_client: Pre-built async HTTP client

        Raises:
            APIKeyError: If no API key is configured and no client was supplied
        """
        self.settings = settings or get_config().llm

        if http_client is None and not self.settings.api_key:
            raise APIKeyError("LLM API key is required")

        self.model_name = self.settings.model_name
        self.url = f"{self.settings.base_url.rstrip('/')}/models/{self.model_name}:generateContent"
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=self.settings.timeout)

        logger.info(f"🧠 Initialized Gemini generator: {self.model_name}")

    @timing_decorator
    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        payload = {
            "contents": [{"role": "user", "parts": [{"text": user_prompt}]}],
            "system_instruction": {"parts": [{"text": system_prompt}]},
        }
        headers = {"x-goog-api-key": self.settings.api_key or ""}

        try:
            response = await self.http_client.post(self.url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            error_msg = f"Generation request failed: {str(e)}"
            logger.error(error_msg)
            raise GenerationError(error_msg) from e

        if not response.is_success:
            logger.error(f"❌ Generation request failed: {response.status_code} - {response.text}")
            raise GenerationError(
                f"Generation request failed with status {response.status_code}",
                status_code=response.status_code,
            )

        try:
            answer = extract_answer(response.json())
        except (ValueError, AttributeError, TypeError) as e:
            error_msg = f"Malformed generation response: {str(e)}"
            logger.error(error_msg)
            raise GenerationError(error_msg) from e

        if answer is None:
            logger.warning("⚠️ Model returned no answer text, using fallback")
            return FALLBACK_ANSWER

        logger.info(f"✅ Generated answer ({len(answer)} chars)")
        return answer

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.http_client.aclose()


def create_answer_generator(settings: Optional[LLMConfig] = None) -> GeminiAnswerGenerator:
    """Create the configured answer generator."""
    return GeminiAnswerGenerator(settings=settings)
