"""
Tests for the remote embedding client.

HTTP is served by ``httpx.MockTransport``; backoff sleeps are recorded
instead of slept.
"""

import json

import httpx
import pytest

from rag_backend.config.settings import EmbeddingConfig
from rag_backend.core.embeddings.providers import RemoteEmbeddingClient
from rag_backend.core.embeddings.rate_limiter import RateLimiter
from rag_backend.utils.exceptions import APIKeyError, EmbeddingError, RateLimitError


class CountingLimiter(RateLimiter):
    def __init__(self):
        super().__init__(0)
        self.acquired = 0

    async def acquire(self) -> float:
        self.acquired += 1
        return await super().acquire()


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


def vectors_for(request: httpx.Request, reverse: bool = False) -> httpx.Response:
    inputs = json.loads(request.content)["input"]
    data = [{"embedding": [float(len(text)), float(i)], "index": i} for i, text in enumerate(inputs)]
    if reverse:
        data.reverse()
    return httpx.Response(200, json={"data": data})


def make_client(handler, batch_size: int = 128, max_attempts: int = 3):
    limiter = CountingLimiter()
    sleep = RecordingSleep()
    client = RemoteEmbeddingClient(
        settings=EmbeddingConfig(api_key="test-key", batch_size=batch_size, max_attempts=max_attempts),
        rate_limiter=limiter,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        sleep=sleep,
    )
    return client, limiter, sleep


class TestEmbed:
    """Test suite for successful embedding requests."""

    @pytest.mark.asyncio
    async def test_should_send_model_and_input(self) -> None:
        # Arrange
        seen = []

        def handler(request):
            seen.append(json.loads(request.content))
            return vectors_for(request)

        client, _, _ = make_client(handler)

        # Act
        vectors = await client.embed(["ab", "abcd"])

        # Assert
        assert vectors == [[2.0, 0.0], [4.0, 1.0]]
        assert seen == [{"model": "voyage-3-large", "input": ["ab", "abcd"]}]

    @pytest.mark.asyncio
    async def test_single_string_should_be_wrapped(self) -> None:
        client, _, _ = make_client(vectors_for)
        assert await client.embed("abc") == [[3.0, 0.0]]
        assert await client.embed_query("abc") == [3.0, 0.0]

    @pytest.mark.asyncio
    async def test_vectors_should_follow_input_order(self) -> None:
        client, _, _ = make_client(lambda request: vectors_for(request, reverse=True))
        vectors = await client.embed(["a", "bb", "ccc"])
        assert [vector[0] for vector in vectors] == [1.0, 2.0, 3.0]

    @pytest.mark.asyncio
    async def test_large_input_should_be_batched_and_rate_limited_per_batch(self) -> None:
        # Arrange
        requests = []

        def handler(request):
            requests.append(request)
            return vectors_for(request)

        client, limiter, _ = make_client(handler, batch_size=2)

        # Act
        vectors = await client.embed(["a", "bb", "ccc", "dddd", "eeeee"])

        # Assert
        assert len(requests) == 3
        assert limiter.acquired == 3
        assert [vector[0] for vector in vectors] == [1.0, 2.0, 3.0, 4.0, 5.0]

    @pytest.mark.asyncio
    async def test_empty_input_should_not_send_a_request(self) -> None:
        requests = []
        client, limiter, _ = make_client(lambda request: requests.append(request) or vectors_for(request))
        assert await client.embed([]) == []
        assert requests == []
        assert limiter.acquired == 0

    @pytest.mark.asyncio
    async def test_should_send_bearer_token_when_client_is_built_internally(self) -> None:
        client = RemoteEmbeddingClient(settings=EmbeddingConfig(api_key="secret"))
        try:
            assert client.http_client.headers["Authorization"] == "Bearer secret"
        finally:
            await client.aclose()


class TestRetry:
    """Test suite for rate-limit retry."""

    @pytest.mark.asyncio
    async def test_429_should_retry_with_backoff(self) -> None:
        # Arrange
        responses = [httpx.Response(429, text="slow down"), httpx.Response(429, text="slow down")]

        def handler(request):
            return responses.pop(0) if responses else vectors_for(request)

        client, limiter, sleep = make_client(handler)

        # Act
        vectors = await client.embed(["abc"])

        # Assert
        assert vectors == [[3.0, 0.0]]
        assert sleep.delays == [1.0, 2.0]
        assert limiter.acquired == 3

    @pytest.mark.asyncio
    async def test_persistent_429_should_raise_after_three_attempts(self) -> None:
        # Arrange
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(429, text="slow down")

        client, _, sleep = make_client(handler)

        # Act / Assert
        with pytest.raises(RateLimitError) as exc_info:
            await client.embed(["abc"])
        assert exc_info.value.status_code == 429
        assert len(attempts) == 3
        assert sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_server_error_should_not_retry(self) -> None:
        # Arrange
        attempts = []

        def handler(request):
            attempts.append(request)
            return httpx.Response(500, text="boom")

        client, _, sleep = make_client(handler)

        # Act / Assert
        with pytest.raises(EmbeddingError) as exc_info:
            await client.embed(["abc"])
        assert not isinstance(exc_info.value, RateLimitError)
        assert exc_info.value.status_code == 500
        assert len(attempts) == 1
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_backoff_should_be_capped(self) -> None:
        client, _, _ = make_client(vectors_for, max_attempts=10)
        assert client._backoff_delay(1) == 1.0
        assert client._backoff_delay(4) == 8.0
        assert client._backoff_delay(5) == 10.0


class TestMalformedResponses:
    """Test suite for responses that cannot be used."""

    @pytest.mark.asyncio
    async def test_missing_data_should_raise(self) -> None:
        client, _, _ = make_client(lambda request: httpx.Response(200, json={"nope": []}))
        with pytest.raises(EmbeddingError, match="Malformed"):
            await client.embed(["abc"])

    @pytest.mark.asyncio
    async def test_vector_count_mismatch_should_raise(self) -> None:
        client, _, _ = make_client(lambda request: httpx.Response(200, json={"data": [{"embedding": [1.0]}]}))
        with pytest.raises(EmbeddingError, match="1 vectors for 2 inputs"):
            await client.embed(["a", "b"])

    @pytest.mark.asyncio
    async def test_transport_error_should_raise_embedding_error(self) -> None:
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client, _, _ = make_client(handler)
        with pytest.raises(EmbeddingError, match="Embedding request failed"):
            await client.embed(["abc"])


class TestConfiguration:
    """Test suite for client construction."""

    def test_missing_api_key_should_raise(self) -> None:
        with pytest.raises(APIKeyError):
            RemoteEmbeddingClient(settings=EmbeddingConfig(api_key=None))

    def test_should_own_a_limiter_with_configured_interval(self) -> None:
        client = RemoteEmbeddingClient(
            settings=EmbeddingConfig(api_key="k", min_request_interval=7.5),
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(vectors_for)),
        )
        assert client.rate_limiter.min_interval == 7.5
