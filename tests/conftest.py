"""
Shared test fixtures and configuration for the entire test suite.

Provides: deterministic fake embedder, counting fake generator, controllable
clock, in-memory document store and a fully wired RAG system.
"""

import re
import zlib
from datetime import datetime, timedelta, timezone
from typing import List, Union

import pytest

from rag_backend.chains.generator import AnswerGenerator
from rag_backend.config.settings import get_config
from rag_backend.core.cache.answer_cache import AnswerCache
from rag_backend.core.data.deduplication import DeduplicationEngine
from rag_backend.core.data.processors import TextChunker
from rag_backend.core.embeddings.providers import EmbeddingProvider
from rag_backend.core.retrieval.hybrid import HybridRetriever
from rag_backend.core.system.rag_system import RAGSystem
from rag_backend.core.vectorstore.memory_store import InMemoryDocumentStore

EMBEDDING_DIMENSION = 256


def hashed_bag_of_words(text: str, dimension: int = EMBEDDING_DIMENSION) -> List[float]:
    """Deterministic embedding: word counts hashed into a fixed number of buckets."""
    vector = [0.0] * dimension
    for token in re.findall(r"\w+", text.lower()):
        vector[zlib.crc32(token.encode("utf-8")) % dimension] += 1.0
    return vector


class FakeEmbedder(EmbeddingProvider):
    """Embedding provider that counts calls and never touches the network."""

    def __init__(self, dimension: int = EMBEDDING_DIMENSION):
        self.dimension = dimension
        self.calls = 0
        self.texts: List[str] = []

    async def embed(self, inputs: Union[str, List[str]]) -> List[List[float]]:
        texts = [inputs] if isinstance(inputs, str) else list(inputs)
        self.calls += 1
        self.texts.extend(texts)
        return [hashed_bag_of_words(text, self.dimension) for text in texts]


class FakeGenerator(AnswerGenerator):
    """Answer generator returning a canned answer and recording prompts."""

    def __init__(self, answer: str = "The Dev Division meets every Tuesday."):
        self.answer = answer
        self.calls = 0
        self.prompts: List[tuple] = []
        self.error: Exception = None

    async def generate(self, system_prompt: str, user_prompt: str) -> str:
        self.calls += 1
        self.prompts.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.answer


class FakeClock:
    """Timezone-aware clock that only moves when told to."""

    def __init__(self):
        self.now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def _unavailable_tokenizer(model_name: str):
    raise RuntimeError(f"no tokenizer for {model_name} in tests")


@pytest.fixture
def embed_text():
    """The fake embedder's embedding function."""
    return hashed_bag_of_words


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(fake_clock: FakeClock) -> InMemoryDocumentStore:
    """In-memory store whose cache TTL is driven by ``fake_clock``."""
    return InMemoryDocumentStore(cache_ttl_seconds=3600, clock=fake_clock)


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def fake_generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def word_chunker() -> TextChunker:
    """Chunker forced onto the word-window path so tests stay offline."""
    return TextChunker(chunk_size=200, chunk_overlap=100, encoding_loader=_unavailable_tokenizer)


@pytest.fixture
def rag_system(memory_store, fake_embedder, fake_generator, word_chunker, fake_clock) -> RAGSystem:
    """RAG system wired entirely from in-process fakes."""
    return RAGSystem(
        store=memory_store,
        embedder=fake_embedder,
        chunker=word_chunker,
        deduplicator=DeduplicationEngine(memory_store),
        retriever=HybridRetriever(memory_store),
        cache=AnswerCache(memory_store, fake_embedder, clock=fake_clock),
        generator=fake_generator,
        config=get_config(),
    )
