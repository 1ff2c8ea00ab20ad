"""Schemas and state for answer synthesis."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from ..chunk.schemas import Category, Chunk, RankedChunk
from ..retrieval.schemas import RetrievalResult


class SourceReference(BaseModel):
    """A chunk cited in an answer."""

    document_name: str = Field(description="Name of the source document")
    chunk_id: str = Field(description="ID of the cited chunk")
    excerpt_text: str = Field(description="Bounded excerpt of the chunk text")
    category: Category = Field(description="Collection of the source document")
    similarity: float = Field(description="Relevance score of the chunk for the query")


class AnswerResponse(BaseModel):
    """Final answer returned for a query."""

    answer: str = Field(description="Synthesized answer text")
    sources: List[SourceReference] = Field(default_factory=list, description="Cited chunks, most relevant first")
    reasoning: str = Field(description="How the answer was produced")


class SynthesisState(str, Enum):
    """States of the synthesis state machine."""

    START = "start"
    NO_CHUNKS = "no_chunks"
    NO_EMBEDDINGS = "no_embeddings"
    VECTOR_SEARCH = "vector_search"
    RANKED = "ranked"
    NO_RELEVANT = "no_relevant"
    GENERATION = "generation"
    ANSWERED = "answered"
    CONTENT_ANALYSIS = "content_analysis"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES


TERMINAL_STATES = frozenset(
    {
        SynthesisState.NO_CHUNKS,
        SynthesisState.NO_RELEVANT,
        SynthesisState.ANSWERED,
        SynthesisState.CONTENT_ANALYSIS,
    }
)


@dataclass
class SynthesisContext:
    """Mutable per-query state threaded through the state handlers.

    Created fresh for every query; never shared between queries.
    """

    query: str
    chunks: Tuple[Chunk, ...]
    state: SynthesisState = SynthesisState.START
    retriever_index: int = 0
    retrieval: Optional[RetrievalResult] = None
    retriever_used: Optional[str] = None
    ranked: List[RankedChunk] = field(default_factory=list)
    context_block: str = ""
    analysis_pool: Sequence[Chunk] = ()
    answer: Optional[str] = None
    backend_used: Optional[str] = None
    trace: List[str] = field(default_factory=list)
    response: Optional[AnswerResponse] = None

    def record_failure(self, stage: str, backend: str, reason: str) -> None:
        self.trace.append(f"{stage} backend {backend} failed ({reason})")

    def note(self, message: str) -> None:
        self.trace.append(message)
