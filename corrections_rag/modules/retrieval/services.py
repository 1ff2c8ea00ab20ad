"""Multi-hop retrieval across the transcript and policy collections."""

from typing import List, Optional, Sequence

from ...infrastructure.embedding.base import EmbeddingProvider
from ...infrastructure.logging import get_logger
from ...infrastructure.ranking import ChunkRanker
from ..chunk.schemas import Category, Chunk
from ..common.exceptions import ProviderUnavailableError
from .schemas import RetrievalResult

logger = get_logger(__name__)


class MultiHopRetriever:
    """Probe both collections with a single query embedding.

    The query is embedded once and ranked independently against the transcript
    chunks and the policy chunks, so the synthesizer can cross-reference a
    supervision conversation with the policy that governs it.

    Only chunks embedded by the same provider are ranked: vectors from another
    model live in a different space even when their dimensions agree.

    Embedding failures are not handled here: ProviderUnavailableError and
    ProviderError propagate to the caller.
    """

    def __init__(self, provider: EmbeddingProvider, ranker: Optional[ChunkRanker] = None):
        self.provider = provider
        self.ranker = ranker or ChunkRanker()

    @property
    def name(self) -> str:
        return self.provider.name

    def comparable_chunks(self, all_chunks: Sequence[Chunk]) -> List[Chunk]:
        """Embedded chunks whose vectors can be compared with this provider's.

        Chunks without a recorded provider are accepted when their dimension
        matches the provider's.
        """
        comparable = []
        for chunk in all_chunks:
            if not chunk.has_embedding:
                continue
            source = chunk.metadata.embedding_provider
            if source == self.name or (source is None and len(chunk.embedding) == self.provider.dimension):
                comparable.append(chunk)
        return comparable

    async def retrieve(
        self,
        query: str,
        all_chunks: Sequence[Chunk],
        transcript_top_k: int = 3,
        policy_top_k: int = 3,
        threshold: Optional[float] = None,
    ) -> RetrievalResult:
        """Rank chunks of both categories against the query.

        Args:
            query: Natural-language query
            all_chunks: Snapshot of every stored chunk
            transcript_top_k: Maximum transcript results
            policy_top_k: Maximum policy results
            threshold: Minimum similarity, defaults to the provider's threshold

        Returns:
            Transcript and policy rankings plus the query embedding

        Raises:
            ProviderUnavailableError: If no chunk was embedded by this provider
        """
        if threshold is None:
            threshold = self.provider.similarity_threshold

        candidates = self.comparable_chunks(all_chunks)
        if not candidates:
            raise ProviderUnavailableError(self.name, "no stored chunks were embedded by this provider")

        query_vector = await self.provider.embed_query(query)

        transcript_chunks = self.ranker.rank_by_category(
            query_vector, candidates, Category.TRANSCRIPT, top_k=transcript_top_k, threshold=threshold
        )
        policy_chunks = self.ranker.rank_by_category(
            query_vector, candidates, Category.POLICY, top_k=policy_top_k, threshold=threshold
        )

        logger.debug(
            f"{self.name} retrieval kept {len(transcript_chunks)} transcript and "
            f"{len(policy_chunks)} policy chunks at threshold {threshold}"
        )

        return RetrievalResult(
            transcript_chunks=transcript_chunks,
            policy_chunks=policy_chunks,
            query_embedding=list(query_vector),
        )
