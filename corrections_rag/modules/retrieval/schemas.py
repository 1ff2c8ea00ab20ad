"""Pydantic schemas for multi-hop retrieval results."""

from typing import List

from pydantic import BaseModel, Field

from ..chunk.schemas import RankedChunk


class RetrievalResult(BaseModel):
    """Per-category rankings for one query, computed against the same query vector."""

    transcript_chunks: List[RankedChunk] = Field(default_factory=list)
    policy_chunks: List[RankedChunk] = Field(default_factory=list)
    query_embedding: List[float] = Field(default_factory=list)

    @property
    def total_chunks(self) -> int:
        return len(self.transcript_chunks) + len(self.policy_chunks)
