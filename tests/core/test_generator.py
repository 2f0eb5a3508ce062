"""
Tests for the Gemini answer generator and prompt building.
"""

import json

import httpx
import pytest

from rag_backend.chains.generator import FALLBACK_ANSWER, GeminiAnswerGenerator
from rag_backend.chains.prompts import NO_INFORMATION_ANSWER, SYSTEM_PROMPT, build_user_prompt
from rag_backend.config.settings import LLMConfig
from rag_backend.utils.exceptions import APIKeyError, GenerationError


def make_generator(handler) -> GeminiAnswerGenerator:
    return GeminiAnswerGenerator(
        settings=LLMConfig(api_key="test-key", model_name="gemini-test"),
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


def answer_response(text: str) -> httpx.Response:
    return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": text}]}}]})


class TestPrompts:
    """Test suite for prompt construction."""

    def test_user_prompt_should_carry_context_and_question(self) -> None:
        prompt = build_user_prompt("chunk one\n---\nchunk two", "When?")
        assert "chunk one\n---\nchunk two" in prompt
        assert prompt.endswith("User Question: When?")

    def test_system_prompt_should_name_the_fallback_answer(self) -> None:
        assert NO_INFORMATION_ANSWER in SYSTEM_PROMPT


class TestGeminiAnswerGenerator:
    """Test suite for GeminiAnswerGenerator.generate."""

    @pytest.mark.asyncio
    async def test_should_post_prompts_and_return_first_text(self) -> None:
        # Arrange
        captured = []

        def handler(request):
            captured.append(request)
            return answer_response("Tuesdays.")

        generator = make_generator(handler)

        # Act
        answer = await generator.generate("be brief", "When?")

        # Assert
        assert answer == "Tuesdays."
        request = captured[0]
        assert request.url.path.endswith("/models/gemini-test:generateContent")
        assert request.headers["x-goog-api-key"] == "test-key"
        assert json.loads(request.content) == {
            "contents": [{"role": "user", "parts": [{"text": "When?"}]}],
            "system_instruction": {"parts": [{"text": "be brief"}]},
        }

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [
        {},
        {"candidates": []},
        {"candidates": [{"content": {"parts": []}}]},
        {"candidates": [{"finishReason": "SAFETY"}]},
    ])
    async def test_missing_text_should_return_fallback(self, body) -> None:
        generator = make_generator(lambda request: httpx.Response(200, json=body))
        assert await generator.generate("s", "u") == FALLBACK_ANSWER

    @pytest.mark.asyncio
    async def test_error_status_should_raise_with_status_code(self) -> None:
        generator = make_generator(lambda request: httpx.Response(503, text="overloaded"))
        with pytest.raises(GenerationError) as exc_info:
            await generator.generate("s", "u")
        assert exc_info.value.status_code == 503
        assert "503" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_transport_error_should_raise_generation_error(self) -> None:
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(GenerationError):
            await make_generator(handler).generate("s", "u")

    @pytest.mark.asyncio
    async def test_non_json_body_should_raise_generation_error(self) -> None:
        generator = make_generator(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(GenerationError, match="Malformed"):
            await generator.generate("s", "u")

    def test_missing_api_key_should_raise(self) -> None:
        with pytest.raises(APIKeyError):
            GeminiAnswerGenerator(settings=LLMConfig(api_key=None))
