"""
Embedding providers for the RAG backend.

Wraps the remote embedding service with per-client rate limiting,
batching, and retry on HTTP 429.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional, Union
import httpx
from rag_backend.core.embeddings.rate_limiter import RateLimiter
from rag_backend.utils.logging import get_logger
from rag_backend.utils.exceptions import APIKeyError, EmbeddingError, RateLimitError
from rag_backend.utils.decorators import timing_decorator
from rag_backend.config.settings import EmbeddingConfig, get_config

logger = get_logger(__name__)

Vector = List[float]


class EmbeddingProvider(ABC):
    """Abstract base class for embedding providers."""

    @abstractmethod
    async def embed(self, inputs: Union[str, List[str]]) -> List[Vector]:
        """
        Embed one or more texts.

        Args:
            inputs: A single text or a list of texts

        Returns:
            One vector per input text, in input order
        """
        pass

    async def embed_query(self, text: str) -> Vector:
        """
        Embed a single query text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector
        """
        vectors = await self.embed(text)
        if not vectors:
            raise EmbeddingError("Embedding service returned no vector for the query")
        return vectors[0]

    async def aclose(self) -> None:
        """Release any held resources."""
        return None


class RemoteEmbeddingClient(EmbeddingProvider):
    """Embedding client for an HTTP ``{model, input} -> {data: [{embedding}]}`` service."""

    def __init__(
        self,
        settings: Optional[EmbeddingConfig] = None,
        rate_limiter: Optional[RateLimiter] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None
    ):
        """
        Initialize the embedding client.

        Args:
            settings: Embedding configuration (defaults to global config)
            rate_limiter: Limiter acquired before every request attempt
            http_client: Pre-built async HTTP client
            sleep: Coroutine used for retry backoff

        Raises:
            APIKeyError: If no API key is configured and no client was supplied
        """
        self.settings = settings or get_config().embedding

        if http_client is None and not self.settings.api_key:
            raise APIKeyError("Embedding API key is required")

        self.model_name = self.settings.model_name
        self.batch_size = max(1, self.settings.batch_size)
        self.max_attempts = max(1, self.settings.max_attempts)
        self.rate_limiter = rate_limiter or RateLimiter(self.settings.min_request_interval)
        self._sleep = sleep or asyncio.sleep
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(
            timeout=self.settings.timeout,
            headers={"Authorization": f"Bearer {self.settings.api_key}"},
        )

        logger.info(f"🤖 Initialized embedding client: {self.model_name}")

    def _batch_texts(self, texts: List[str]) -> List[List[str]]:
        """Split texts into batches."""
        return [texts[i:i + self.batch_size] for i in range(0, len(texts), self.batch_size)]

    def _backoff_delay(self, attempt: int) -> float:
        return min(self.settings.backoff_base * (2 ** (attempt - 1)), self.settings.backoff_max)

    @timing_decorator
    async def embed(self, inputs: Union[str, List[str]]) -> List[Vector]:
        """
        Embed texts, one request per batch.

        Raises:
            RateLimitError: If the service keeps rate limiting after all attempts
            EmbeddingError: On any other failure
        """
        texts = [inputs] if isinstance(inputs, str) else list(inputs)
        if not texts:
            return []

        logger.info(f"🔤 Embedding {len(texts)} texts")
        vectors: List[Vector] = []
        for batch in self._batch_texts(texts):
            vectors.extend(await self._embed_with_retry(batch))
        return vectors

    async def _embed_with_retry(self, batch: List[str]) -> List[Vector]:
        """Retry a single batch on rate limiting with exponential backoff."""
        for attempt in range(1, self.max_attempts + 1):
            await self.rate_limiter.acquire()
            try:
                return await self._request(batch)
            except RateLimitError as e:
                if attempt == self.max_attempts:
                    logger.error(f"❌ Rate limit persisted after {attempt} attempts")
                    raise
                delay = self._backoff_delay(attempt)
                logger.warning(f"⚠️ Rate limit hit (attempt {attempt}/{self.max_attempts}), "
                               f"retrying after {delay:.1f}s: {str(e)}")
                await self._sleep(delay)

        raise EmbeddingError("Embedding retry loop exited without a result")

    async def _request(self, batch: List[str]) -> List[Vector]:
        """Send one embedding request and parse the vectors out of the response."""
        payload = {"model": self.model_name, "input": batch}

        try:
            response = await self.http_client.post(self.settings.api_url, json=payload)
        except httpx.HTTPError as e:
            error_msg = f"Embedding request failed: {str(e)}"
            logger.error(error_msg)
            raise EmbeddingError(error_msg) from e

        if response.status_code == 429:
            raise RateLimitError(f"Embedding service rate limited the request: {response.text[:200]}")

        if response.status_code >= 400:
            error_msg = f"Embedding request failed with status {response.status_code}: {response.text[:500]}"
            logger.error(error_msg)
            raise EmbeddingError(error_msg, status_code=response.status_code)

        try:
            data = response.json()["data"]
            if all("index" in item for item in data):
                data = sorted(data, key=lambda item: item["index"])
            vectors = [list(map(float, item["embedding"])) for item in data]
        except (ValueError, KeyError, TypeError) as e:
            error_msg = f"Malformed embedding response: {str(e)}"
            logger.error(error_msg)
            raise EmbeddingError(error_msg) from e

        if len(vectors) != len(batch):
            raise EmbeddingError(f"Embedding service returned {len(vectors)} vectors for {len(batch)} inputs")

        return vectors

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.http_client.aclose()


def create_embedding_client(settings: Optional[EmbeddingConfig] = None) -> RemoteEmbeddingClient:
    """
    Create an embedding client from configuration.

    Args:
        settings: Embedding configuration (defaults to global config)

    Returns:
        Embedding client instance
    """
    return RemoteEmbeddingClient(settings=settings)
