"""Brute-force chunk ranking by cosine similarity."""

from typing import Iterable, List, Sequence

from ...modules.chunk.schemas import Category, Chunk, RankedChunk
from .similarity import lenient_cosine_similarity


class ChunkRanker:
    """Rank chunks against a query vector.

    Compares the query against every chunk, so results are exact. Ranking is
    best-effort and never raises on bad vectors:

    - chunks without an embedding are excluded
    - chunks whose embedding dimensionality differs from the query score 0.0

    The ranker has no opinion on thresholds; callers pass the threshold that
    belongs to the embedding provider that produced the vectors.

    Characteristics:
    - Time Complexity: O(n * d) where n = chunks, d = dimension
    - Ordering: descending similarity, ties keep input order
    """

    def rank(
        self,
        query_vector: Sequence[float],
        chunks: Iterable[Chunk],
        top_k: int,
        threshold: float,
    ) -> List[RankedChunk]:
        """Score, filter, sort and truncate chunks.

        Args:
            query_vector: The query embedding
            chunks: Candidate chunks
            top_k: Maximum number of results
            threshold: Minimum similarity a chunk needs to be kept

        Returns:
            Ranked chunks sorted by similarity (descending), at most top_k
        """
        if top_k <= 0:
            return []

        scored = []
        for chunk in chunks:
            if not chunk.has_embedding:
                continue

            similarity = lenient_cosine_similarity(query_vector, chunk.embedding)
            if similarity >= threshold:
                scored.append(RankedChunk(chunk=chunk, similarity=similarity))

        # list.sort is stable, so equal scores keep their input order.
        scored.sort(key=lambda ranked: ranked.similarity, reverse=True)

        return scored[:top_k]

    def rank_by_category(
        self,
        query_vector: Sequence[float],
        chunks: Iterable[Chunk],
        category: Category,
        top_k: int,
        threshold: float,
    ) -> List[RankedChunk]:
        """Rank only the chunks of one category."""
        category_chunks = [chunk for chunk in chunks if chunk.metadata.category == category]
        return self.rank(query_vector, category_chunks, top_k=top_k, threshold=threshold)


def fuse_ranked_chunks(*ranked_lists: Sequence[RankedChunk], top_n: int) -> List[RankedChunk]:
    """Merge ranked lists into one list ordered by similarity.

    Lists are concatenated in argument order before a stable sort, so on equal
    scores earlier lists win.
    """
    if top_n <= 0:
        return []

    fused = [ranked for ranked_list in ranked_lists for ranked in ranked_list]
    fused.sort(key=lambda ranked: ranked.similarity, reverse=True)
    return fused[:top_n]
