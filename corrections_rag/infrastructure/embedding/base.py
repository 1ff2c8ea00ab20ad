"""Abstract base class for embedding providers."""

from abc import ABC, abstractmethod
from typing import List, Sequence


class EmbeddingProvider(ABC):
    """Turns text into fixed-length vectors.

    Providers are interchangeable behind this interface; ranking code only ever
    sees vectors and the provider's similarity threshold. Remote providers fail
    with ProviderUnavailableError when they lack credentials and with
    ProviderError when the service misbehaves.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in logs and diagnostics."""
        pass

    @property
    @abstractmethod
    def dimension(self) -> int:
        """Length of the vectors this provider produces."""
        pass

    @property
    @abstractmethod
    def similarity_threshold(self) -> float:
        """Minimum cosine similarity that counts as relevant for this provider's vectors."""
        pass

    @abstractmethod
    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """Embed texts, one vector per text, in input order.

        Args:
            texts: Texts to embed

        Returns:
            List of vectors, empty when texts is empty
        """
        pass

    async def embed_query(self, text: str) -> List[float]:
        """Embed a single query text."""
        vectors = await self.embed([text])
        return vectors[0]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, dimension={self.dimension})"
