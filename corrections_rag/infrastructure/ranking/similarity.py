"""Cosine similarity between embedding vectors.

Two contracts are offered:

- cosine_similarity is strict: comparing vectors of different dimensionality is
  a programming error and raises DimensionMismatchError.
- lenient_cosine_similarity is for best-effort ranking: a mismatch scores 0.0,
  which falls below every positive ranking threshold.
"""

import math
from typing import Sequence

from ...modules.common.exceptions import DimensionMismatchError
from ..logging import get_logger

logger = get_logger(__name__)


def cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Calculate cosine similarity between two vectors.

    Formula: cos(θ) = (A · B) / (||A|| ||B||)

    Args:
        vec1: First vector
        vec2: Second vector

    Returns:
        Cosine similarity in [-1, 1]; 0.0 if either vector has zero magnitude

    Raises:
        DimensionMismatchError: If the vectors differ in length
    """
    if len(vec1) != len(vec2):
        raise DimensionMismatchError(len(vec1), len(vec2))

    dot_product = sum(a * b for a, b in zip(vec1, vec2))

    magnitude1 = math.sqrt(sum(a * a for a in vec1))
    magnitude2 = math.sqrt(sum(b * b for b in vec2))

    if magnitude1 == 0.0 or magnitude2 == 0.0:
        return 0.0

    similarity = dot_product / (magnitude1 * magnitude2)

    # Rounding can push parallel vectors a hair past 1.
    return max(-1.0, min(1.0, similarity))


def lenient_cosine_similarity(vec1: Sequence[float], vec2: Sequence[float]) -> float:
    """Cosine similarity that scores mismatched dimensionality as 0.0."""
    try:
        return cosine_similarity(vec1, vec2)
    except DimensionMismatchError as exc:
        logger.debug(f"Scoring mismatched vectors as 0.0: {exc}")
        return 0.0
