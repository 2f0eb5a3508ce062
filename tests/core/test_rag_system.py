"""
Tests for ingest and query orchestration.
"""

import pytest

from rag_backend.chains.prompts import SYSTEM_PROMPT
from rag_backend.config.settings import (
    CacheConfig,
    DatabaseConfig,
    EmbeddingConfig,
    LLMConfig,
    RAGConfig,
    RetrievalConfig,
)
from rag_backend.core.system import create_rag_system
from rag_backend.core.vectorstore import InMemoryDocumentStore
from rag_backend.utils.exceptions import APIKeyError, ConfigurationError, GenerationError, ValidationError

FACT = "CSEC Dev Division holds weekly sessions on Tuesdays."
QUESTION = "When does the Dev Division meet?"


class TestIngest:
    """Test suite for RAGSystem.ingest."""

    @pytest.mark.asyncio
    async def test_should_store_chunks(self, rag_system, memory_store) -> None:
        result = await rag_system.ingest(FACT)
        assert result.chunks_inserted == 1
        assert result.superseded_old_chunks == 0
        assert await memory_store.count_chunks() == 1

    @pytest.mark.asyncio
    async def test_reingesting_same_text_should_supersede(self, rag_system, memory_store) -> None:
        await rag_system.ingest(FACT)
        result = await rag_system.ingest(FACT)
        assert result.chunks_inserted == 1
        assert result.superseded_old_chunks == 1
        assert await memory_store.count_chunks(include_superseded=False) == 1
        assert await memory_store.count_chunks() == 2

    @pytest.mark.asyncio
    async def test_long_text_should_be_embedded_in_one_call(self, rag_system, fake_embedder) -> None:
        text = " ".join(f"topic{i}" for i in range(450))
        result = await rag_system.ingest(text)
        assert result.chunks_inserted == 4
        assert fake_embedder.calls == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, "", "   \n "])
    async def test_missing_text_should_raise_validation_error(self, rag_system, text) -> None:
        with pytest.raises(ValidationError, match='"text" field is required'):
            await rag_system.ingest(text)

    @pytest.mark.asyncio
    async def test_ingest_should_invalidate_the_cache(self, rag_system, memory_store) -> None:
        await rag_system.ingest(FACT)
        await rag_system.query(QUESTION)
        assert len(await memory_store.list_cache_entries()) == 1

        await rag_system.ingest("The AI division meets on Fridays.")

        assert await memory_store.list_cache_entries() == []

    @pytest.mark.asyncio
    async def test_invalidation_can_be_disabled(self, rag_system, memory_store) -> None:
        rag_system.config = RAGConfig(cache={"invalidate_on_ingest": False})
        await rag_system.ingest(FACT)
        await rag_system.query(QUESTION)

        await rag_system.ingest("The AI division meets on Fridays.")

        assert len(await memory_store.list_cache_entries()) == 1


class TestQuery:
    """Test suite for RAGSystem.query."""

    @pytest.mark.asyncio
    async def test_end_to_end_ingest_query_and_cached_requery(self, rag_system, fake_embedder, fake_generator) -> None:
        # Arrange
        await rag_system.ingest(FACT)
        await rag_system.ingest(FACT)

        # Act
        first = await rag_system.query(QUESTION)
        embed_calls_after_first = fake_embedder.calls
        second = await rag_system.query(QUESTION)

        # Assert
        assert first.cached is False
        assert first.retrieved_data == [FACT]
        assert first.answer == fake_generator.answer
        assert second.cached is True
        assert second.semantic_cache is False
        assert second.retrieved_data == []
        assert second.answer == first.answer
        assert fake_generator.calls == 1
        assert fake_embedder.calls == embed_calls_after_first

    @pytest.mark.asyncio
    async def test_miss_should_reuse_the_cache_embedding(self, rag_system, fake_embedder) -> None:
        await rag_system.ingest(FACT)
        calls_before = fake_embedder.calls

        await rag_system.query(QUESTION)

        assert fake_embedder.calls == calls_before + 1

    @pytest.mark.asyncio
    async def test_similar_question_should_be_a_semantic_hit(self, rag_system, fake_generator) -> None:
        await rag_system.ingest(FACT)
        await rag_system.query(QUESTION)

        result = await rag_system.query("when does the dev division meet")

        assert result.cached is True
        assert result.semantic_cache is True
        assert fake_generator.calls == 1

    @pytest.mark.asyncio
    async def test_prompt_should_contain_retrieved_context(self, rag_system, fake_generator) -> None:
        await rag_system.ingest(FACT)
        await rag_system.query(QUESTION)

        system_prompt, user_prompt = fake_generator.prompts[0]
        assert system_prompt == SYSTEM_PROMPT
        assert FACT in user_prompt
        assert QUESTION in user_prompt

    @pytest.mark.asyncio
    async def test_ambiguous_answer_should_not_be_cached(self, rag_system, fake_generator, memory_store) -> None:
        fake_generator.answer = "I don't have that specific information in my current knowledge base."

        await rag_system.query("Who runs the AI division?")
        again = await rag_system.query("Who runs the AI division?")

        assert again.cached is False
        assert fake_generator.calls == 2
        assert await memory_store.list_cache_entries() == []

    @pytest.mark.asyncio
    async def test_cached_answer_should_expire(self, rag_system, fake_generator, fake_clock) -> None:
        await rag_system.ingest(FACT)
        await rag_system.query(QUESTION)

        fake_clock.advance(3600)
        result = await rag_system.query(QUESTION)

        assert result.cached is False
        assert fake_generator.calls == 2

    @pytest.mark.asyncio
    async def test_generation_failure_should_propagate_and_cache_nothing(self, rag_system, fake_generator, memory_store) -> None:
        await rag_system.ingest(FACT)
        fake_generator.error = GenerationError("Generation request failed with status 500", status_code=500)

        with pytest.raises(GenerationError):
            await rag_system.query(QUESTION)

        assert await memory_store.list_cache_entries() == []

    @pytest.mark.asyncio
    async def test_missing_question_should_raise_validation_error(self, rag_system) -> None:
        with pytest.raises(ValidationError, match='"query" field is required'):
            await rag_system.query("  ")

    @pytest.mark.asyncio
    async def test_empty_knowledge_base_should_still_answer(self, rag_system, fake_generator) -> None:
        result = await rag_system.query(QUESTION)
        assert result.retrieved_data == []
        assert result.answer == fake_generator.answer

    @pytest.mark.asyncio
    async def test_fresh_answer_should_be_cached_on_miss(self, rag_system, memory_store) -> None:
        # Arrange
        await rag_system.ingest(FACT)

        # Act
        result = await rag_system.query("When does the Dev division meet?")

        # Assert
        assert result.cached is False
        assert [entry.query for entry in await memory_store.list_cache_entries()] == [
            "When does the Dev division meet?"
        ]

    @pytest.mark.asyncio
    async def test_cache_write_failure_should_not_fail_query(self, rag_system, fake_generator) -> None:
        # Arrange
        async def failing_store(*args, **kwargs):
            raise RuntimeError("cache write exploded")

        rag_system.cache.store = failing_store
        await rag_system.ingest(FACT)

        # Act
        result = await rag_system.query(QUESTION)

        # Assert
        assert result.cached is False
        assert result.answer == fake_generator.answer


class TestSystemStatus:
    """Test suite for health and stats."""

    @pytest.mark.asyncio
    async def test_health_check(self, rag_system) -> None:
        health = await rag_system.health_check()
        assert health["overall"] == "healthy"
        assert health["components"]["document_store"] is True

    @pytest.mark.asyncio
    async def test_stats(self, rag_system) -> None:
        await rag_system.ingest(FACT)
        stats = await rag_system.get_stats()
        assert stats["store"]["chunks"] == 1
        assert stats["configuration"]["cache_mode"] == "semantic"


def keyed_config(**overrides) -> RAGConfig:
    fields = {
        "database": DatabaseConfig(backend="memory"),
        "embedding": EmbeddingConfig(api_key="embed-key"),
        "llm": LLMConfig(api_key="llm-key"),
    }
    fields.update(overrides)
    return RAGConfig(**fields)


class TestCreateRagSystem:
    """Test suite for wiring a system from configuration."""

    @pytest.mark.asyncio
    async def test_should_wire_components_from_configuration(self) -> None:
        # Arrange
        config = keyed_config(retrieval=RetrievalConfig(top_k=3, keyword_boost=1.5))

        # Act
        system = create_rag_system(config)

        # Assert
        assert isinstance(system.store, InMemoryDocumentStore)
        assert system.retriever.top_k == 3
        assert system.retriever.keyword_boost == 1.5
        assert system.cache is not None
        await system.close()

    @pytest.mark.asyncio
    async def test_disabled_cache_should_not_be_built(self) -> None:
        system = create_rag_system(keyed_config(cache=CacheConfig(enabled=False)))
        assert system.cache is None
        await system.close()

    def test_missing_keys_should_be_rejected(self) -> None:
        with pytest.raises(APIKeyError):
            create_rag_system(keyed_config(llm=LLMConfig(api_key="")))

    def test_unknown_backend_should_be_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            create_rag_system(keyed_config(database=DatabaseConfig(backend="mongo")))
