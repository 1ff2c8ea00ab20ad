"""Deterministic hash-based embeddings for demos and tests."""

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .base import EmbeddingProvider


@dataclass(frozen=True)
class FeatureBoost:
    """Adds weight to a fixed dimension when any marker occurs in the text."""

    dimension: int
    markers: Tuple[str, ...]
    weight: float


# Entity names get a stronger signal than topic keywords.
DEFAULT_FEATURE_BOOSTS: Tuple[FeatureBoost, ...] = (
    FeatureBoost(dimension=100, markers=("nathan",), weight=2.0),
    FeatureBoost(dimension=101, markers=("robert",), weight=2.0),
    FeatureBoost(dimension=200, markers=("stress", "financial"), weight=1.5),
    FeatureBoost(dimension=201, markers=("work", "employment"), weight=1.5),
    FeatureBoost(dimension=202, markers=("sobriety", "meetings"), weight=1.5),
    FeatureBoost(dimension=300, markers=("policy", "procedure"), weight=1.5),
    FeatureBoost(dimension=301, markers=("grievance", "appeal"), weight=1.5),
    FeatureBoost(dimension=302, markers=("programming", "treatment"), weight=1.5),
)


def rolling_hash(text: str) -> int:
    """Stable 32-bit rolling hash (h * 31 + c), folded to a non-negative int.

    Python's built-in hash() is salted per process, so it cannot be used for
    vectors that must be reproducible across runs.
    """
    value = 0
    for char in text:
        value = ((value << 5) - value + ord(char)) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


class DeterministicEmbeddingProvider(EmbeddingProvider):
    """Embedding provider that is a pure function of its input.

    Each lowercased whitespace token is hashed into a dimension and weighted by
    its position (earlier tokens weigh more). Marker words then boost reserved
    dimensions so that named entities and topics dominate the similarity, and
    the vector is L2-normalized. Text with no tokens yields the zero vector.

    Scores between these vectors are small for loosely related text, hence the
    low default threshold.
    """

    def __init__(
        self,
        dimension: int = 384,
        similarity_threshold: float = 0.01,
        feature_boosts: Optional[Sequence[FeatureBoost]] = None,
    ):
        boosts = tuple(DEFAULT_FEATURE_BOOSTS if feature_boosts is None else feature_boosts)
        for boost in boosts:
            if not 0 <= boost.dimension < dimension:
                raise ValueError(f"Feature boost dimension {boost.dimension} outside embedding dimension {dimension}")

        self._dimension = dimension
        self._similarity_threshold = similarity_threshold
        self._feature_boosts = boosts

    @property
    def name(self) -> str:
        return "deterministic"

    @property
    def dimension(self) -> int:
        return self._dimension

    @property
    def similarity_threshold(self) -> float:
        return self._similarity_threshold

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        return [self.embed_sync(text) for text in texts]

    def embed_sync(self, text: str) -> List[float]:
        """Embed one text without going through the event loop."""
        lowered = text.lower()
        vector = [0.0] * self._dimension

        for position, token in enumerate(lowered.split()):
            vector[rolling_hash(token) % self._dimension] += 1.0 / (position + 1)

        for boost in self._feature_boosts:
            if any(marker in lowered for marker in boost.markers):
                vector[boost.dimension] += boost.weight

        magnitude = math.sqrt(sum(value * value for value in vector))
        if magnitude == 0.0:
            return vector
        return [value / magnitude for value in vector]
