"""Embedding providers backed by hosted embedding APIs."""

from numbers import Real
from typing import Any, List, Optional, Sequence

import httpx

from ...modules.common.exceptions import ProviderError, ProviderUnavailableError
from ..http import bearer_headers, post_json
from ..logging import get_logger
from .base import EmbeddingProvider

logger = get_logger(__name__)


def _is_numeric_vector(vector: Any) -> bool:
    return (
        isinstance(vector, list)
        and bool(vector)
        and all(isinstance(value, Real) and not isinstance(value, bool) for value in vector)
    )


def mean_pool(backend: str, token_vectors: List[Any]) -> List[float]:
    """Average token-level vectors into one sentence vector.

    Raises:
        ProviderError: If the token vectors are not numeric or differ in length
    """
    if not all(_is_numeric_vector(vector) for vector in token_vectors):
        raise ProviderError(backend, "embedding vector contains non-numeric values")

    width = len(token_vectors[0])
    if any(len(vector) != width for vector in token_vectors):
        raise ProviderError(backend, "token vectors differ in length")

    count = len(token_vectors)
    return [sum(float(vector[i]) for vector in token_vectors) / count for i in range(width)]


def coerce_vectors(backend: str, raw: Any, expected_count: int) -> List[List[float]]:
    """Validate a decoded payload as a list of numeric vectors.

    Feature-extraction models without a pooling layer return one vector per
    token; those are mean-pooled into a single vector per text.

    Raises:
        ProviderError: If the payload is not exactly expected_count numeric vectors
    """
    if not isinstance(raw, list) or len(raw) != expected_count:
        got = len(raw) if isinstance(raw, list) else type(raw).__name__
        raise ProviderError(backend, f"expected {expected_count} vectors, got {got}")

    vectors = []
    for vector in raw:
        if not isinstance(vector, list) or not vector:
            raise ProviderError(backend, "malformed embedding vector")
        if isinstance(vector[0], list):
            vectors.append(mean_pool(backend, vector))
            continue
        if not _is_numeric_vector(vector):
            raise ProviderError(backend, "embedding vector contains non-numeric values")
        vectors.append([float(value) for value in vector])

    return vectors


class OpenAIEmbeddingProvider(EmbeddingProvider):
    """Embeddings from the OpenAI embeddings endpoint (text-embedding-3-small by default)."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: str = "https://api.openai.com/v1",
        dimension: int = 1536,
        similarity_threshold: float = 0.7,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._dimension = dimension
        self._similarity_threshold = similarity_threshold
        self._client = client

    @property
    def name(self) -> str:
        return "openai"

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def similarity_threshold(self) -> float:
        return self._similarity_threshold

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []

        if not self.api_key:
            raise ProviderUnavailableError(self.name, "OPENAI_API_KEY is not configured")

        body = await post_json(
            self.name,
            f"{self.base_url}/embeddings",
            {"model": self.model, "input": list(texts)},
            headers=bearer_headers(self.api_key),
            timeout=self.timeout,
            client=self._client,
        )

        data = body.get("data") if isinstance(body, dict) else None
        if not isinstance(data, list) or any(not isinstance(item, dict) for item in data):
            raise ProviderError(self.name, "response has no embedding data")

        # The API may return items out of order; "index" is authoritative.
        ordered = sorted(data, key=lambda item: item.get("index", 0))
        vectors = coerce_vectors(self.name, [item.get("embedding") for item in ordered], len(texts))

        logger.debug(f"Embedded {len(texts)} texts with {self.model}")
        return vectors


class HuggingFaceEmbeddingProvider(EmbeddingProvider):
    """Embeddings from the Hugging Face inference feature-extraction pipeline."""

    def __init__(
        self,
        api_key: str,
        model: str = "sentence-transformers/all-MiniLM-L6-v2",
        base_url: str = "https://api-inference.huggingface.co/pipeline/feature-extraction",
        dimension: int = 384,
        similarity_threshold: float = 0.3,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._dimension = dimension
        self._similarity_threshold = similarity_threshold
        self._client = client

    @property
    def name(self) -> str:
        return "huggingface"

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def similarity_threshold(self) -> float:
        return self._similarity_threshold

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []

        if not self.api_key:
            raise ProviderUnavailableError(self.name, "HUGGINGFACE_API_KEY is not configured")

        body = await post_json(
            self.name,
            f"{self.base_url}/{self.model}",
            {"inputs": list(texts), "options": {"wait_for_model": True}},
            headers=bearer_headers(self.api_key),
            timeout=self.timeout,
            client=self._client,
        )

        vectors = coerce_vectors(self.name, body, len(texts))

        logger.debug(f"Embedded {len(texts)} texts with {self.model}")
        return vectors
