"""Similarity scoring and chunk ranking."""

from .ranker import ChunkRanker, fuse_ranked_chunks
from .similarity import cosine_similarity, lenient_cosine_similarity

__all__ = [
    "ChunkRanker",
    "fuse_ranked_chunks",
    "cosine_similarity",
    "lenient_cosine_similarity",
]
