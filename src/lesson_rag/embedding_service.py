"""Embedding service for generating text embeddings via OpenAI-compatible APIs."""

import asyncio
from collections.abc import Sequence
from typing import Any

from openai import AsyncOpenAI

from src.utils.logging import get_logger

from .config import LessonRAGConfig
from .embedding_cache import EmbeddingCache
from .errors import EmbeddingProviderError

logger = get_logger(__name__)


class EmbeddingService:
    """Service for generating text embeddings.

    Supports OpenAI, Ollama, OpenRouter and other OpenAI-compatible providers.
    Ingestion embeds every chunk of a lesson in one batched request; queries
    embed a single question, optionally through an injected cache. Provider
    payloads are mapped to plain ``list[float]`` vectors here, and every
    failure surfaces as ``EmbeddingProviderError``. Retries are left to the
    caller, so the SDK client is built with ``max_retries=0``.
    """

    def __init__(
        self,
        config: LessonRAGConfig,
        cache: EmbeddingCache | None = None,
    ):
        """Initialize embedding service with configuration.

        Args:
            config: Configuration object with embedding provider settings.
            cache: Optional cache for single-text (question) embeddings.
        """
        self.config = config
        self.cache = cache
        self.client = self._get_client()
        logger.info(
            "embedding_service_initialized",
            provider=config.embedding_provider,
            model=config.embedding_model,
            base_url=config.embedding_base_url,
            cache_enabled=cache is not None,
        )

    def _get_client(self) -> AsyncOpenAI:
        """Initialize OpenAI-compatible client based on provider.

        Returns:
            Configured AsyncOpenAI client instance.
        """
        if self.config.embedding_provider == "ollama":
            # Ollama doesn't require a real API key
            api_key = "ollama"
        else:
            api_key = self.config.embedding_api_key

        return AsyncOpenAI(
            base_url=self.config.embedding_base_url,
            api_key=api_key,
            timeout=self.config.request_timeout_seconds,
            max_retries=0,
        )

    @property
    def model(self) -> str:
        return self.config.embedding_model

    async def embed(self, texts: Sequence[str]) -> list[list[float]]:
        """Generate embeddings for several texts in one provider call.

        Args:
            texts: Texts to embed.

        Returns:
            One vector per input text, in input order.

        Raises:
            EmbeddingProviderError: If the call fails, times out, or returns
                a payload that does not match the input.
        """
        if not texts:
            return []

        logger.info("embedding_started", count=len(texts), model=self.model)

        try:
            response = await asyncio.wait_for(
                self.client.embeddings.create(input=list(texts), model=self.model),
                timeout=self.config.request_timeout_seconds,
            )
        except TimeoutError as e:
            logger.error(
                "embedding_timeout",
                count=len(texts),
                timeout=self.config.request_timeout_seconds,
            )
            raise EmbeddingProviderError(
                f"Embedding request timed out after {self.config.request_timeout_seconds}s"
            ) from e
        except Exception as e:
            logger.exception(
                "embedding_failed",
                count=len(texts),
                error_type=type(e).__name__,
            )
            raise EmbeddingProviderError(f"Embedding provider error: {e}") from e

        embeddings = self._parse_response(response, expected=len(texts))

        logger.info(
            "embedding_completed",
            count=len(embeddings),
            embedding_dim=len(embeddings[0]),
        )
        return embeddings

    async def embed_text(self, text: str) -> list[float]:
        """Generate embedding for a single text.

        Args:
            text: Text content to embed.

        Returns:
            Embedding vector as a list of floats.

        Raises:
            EmbeddingProviderError: If embedding generation fails.
        """
        if self.cache is not None:
            cached = self.cache.get(self.model, text)
            if cached is not None:
                logger.debug("embedding_cache_hit", text_length=len(text))
                return cached

        embedding = (await self.embed([text]))[0]

        if self.cache is not None:
            self.cache.put(self.model, text, embedding)
        return embedding

    def _parse_response(self, response: Any, expected: int) -> list[list[float]]:
        """Map a provider response to vectors, validating count and dimension."""
        try:
            data = list(response.data)
        except Exception as e:
            raise EmbeddingProviderError("Embedding response has no data") from e

        if len(data) != expected:
            raise EmbeddingProviderError(
                f"Embedding provider returned {len(data)} vectors for {expected} inputs"
            )

        # Providers tag each vector with the position of its input
        indexes = [getattr(item, "index", None) for item in data]
        if all(isinstance(i, int) for i in indexes):
            data = sorted(data, key=lambda item: item.index)

        try:
            embeddings = [[float(x) for x in item.embedding] for item in data]
        except (TypeError, ValueError) as e:
            raise EmbeddingProviderError("Embedding response contains non-numeric values") from e

        dimensions = {len(embedding) for embedding in embeddings}
        if 0 in dimensions:
            raise EmbeddingProviderError("Embedding provider returned an empty vector")
        if len(dimensions) > 1:
            raise EmbeddingProviderError(
                f"Embedding provider returned mixed dimensions: {sorted(dimensions)}"
            )
        return embeddings
