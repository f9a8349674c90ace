"""Embedding providers.

Security: the API key is read from settings only, never hardcoded.
Provides a deterministic offline embedder when no key is present.
"""

import hashlib
import logging
import re
from typing import Protocol

import numpy as np
import openai
from openai import AsyncOpenAI

from docrag.config import Settings
from docrag.errors import ProviderResponseError
from docrag.llm.executor import ProviderCallExecutor, ProviderLogger, ProviderMetrics, RetryConfig
from docrag.llm.openai_support import translate_openai_error

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\w+")


class EmbeddingProvider(Protocol):
    """Protocol for embedding provider implementations."""

    dimension: int

    async def embed(self, text: str) -> list[float]:
        """Return a vector of exactly ``dimension`` floats for ``text``.

        Raises:
            ProviderError: On transport, auth or rate-limit failure, or when
                the response carries no usable vector
        """
        ...


class HashingEmbeddingProvider:
    """Deterministic feature-hashing embedder (no API key required).

    Each lower-cased word token is hashed to a signed bucket; the resulting
    vector is L2-normalised, so texts sharing words land close together.
    """

    name = "hashing"

    def __init__(self, dimension: int = 1536) -> None:
        self.dimension = dimension

    async def embed(self, text: str) -> list[float]:
        """Embed text by hashing its tokens."""
        vector = np.zeros(self.dimension, dtype=np.float64)

        for token in TOKEN_PATTERN.findall(text.lower()):
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:4], "big") % self.dimension
            vector[bucket] += 1.0 if digest[4] & 1 else -1.0

        norm = np.linalg.norm(vector)
        if norm > 0:
            vector /= norm

        return vector.tolist()


class OpenAIEmbeddingProvider:
    """OpenAI-backed embedding provider."""

    name = "openai"

    def __init__(
        self,
        client: AsyncOpenAI,
        executor: ProviderCallExecutor,
        model: str = "text-embedding-3-small",
        dimension: int = 1536,
    ) -> None:
        """Initialize provider.

        Args:
            client: Shared AsyncOpenAI client
            executor: Retry/timeout executor for embedding calls
            model: Embedding model name
            dimension: Expected vector length
        """
        self._client = client
        self._executor = executor
        self.model = model
        self.dimension = dimension

    async def embed(self, text: str) -> list[float]:
        """Embed text using the OpenAI embeddings API."""

        async def request() -> list[float]:
            try:
                response = await self._client.embeddings.create(model=self.model, input=text)
            except openai.APIError as e:
                raise translate_openai_error(e) from e
            return self._extract_vector(response)

        return await self._executor.call("embed", request)

    def _extract_vector(self, response: object) -> list[float]:
        """Pull the single embedding out of an API response."""
        data = getattr(response, "data", None)
        if not data:
            raise ProviderResponseError("embedding response contained no data")

        embedding = getattr(data[0], "embedding", None)
        if not embedding:
            raise ProviderResponseError("embedding response contained an empty vector")

        if len(embedding) != self.dimension:
            raise ProviderResponseError(
                f"expected {self.dimension} dimensions, got {len(embedding)}"
            )

        return [float(value) for value in embedding]


def build_embedding_provider(
    settings: Settings,
    client: AsyncOpenAI | None,
    *,
    metrics: ProviderMetrics | None = None,
    provider_logger: ProviderLogger | None = None,
) -> EmbeddingProvider:
    """Factory: OpenAI provider when a client exists, hashing embedder otherwise."""
    if client is None:
        return HashingEmbeddingProvider(dimension=settings.embedding_dim)

    executor = ProviderCallExecutor(
        "openai",
        RetryConfig.from_settings(settings),
        metrics=metrics,
        logger=provider_logger,
    )
    return OpenAIEmbeddingProvider(
        client,
        executor,
        model=settings.embedding_model,
        dimension=settings.embedding_dim,
    )
