"""Pydantic schemas for chunk entities."""

from enum import Enum
from typing import Annotated, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field


class Category(str, Enum):
    """Partition label of a chunk's source document."""

    TRANSCRIPT = "transcript"
    POLICY = "policy"


class ChunkMetadata(BaseModel):
    """Provenance of a chunk within its source document."""

    model_config = ConfigDict(frozen=True)

    document_id: int = Field(description="ID of the owning document")
    document_name: Annotated[str, Field(min_length=1, description="Display name of the owning document")]
    category: Category = Field(description="Collection the owning document belongs to")
    chunk_index: Annotated[int, Field(ge=0, description="Position of the chunk within its document")]
    embedding_provider: Optional[str] = Field(default=None, description="Name of the provider that embedded the chunk")


class Chunk(BaseModel):
    """A unit of retrievable text.

    Chunks are immutable once stored. An empty embedding means the chunk has not
    been embedded yet; it stays retrievable through content analysis but never
    takes part in vector ranking.
    """

    model_config = ConfigDict(frozen=True)

    id: Annotated[str, Field(min_length=1, description="Opaque unique identifier")]
    text: Annotated[str, Field(min_length=1, description="Extracted text content")]
    embedding: Tuple[float, ...] = Field(default=(), description="Vector embedding, empty when not yet embedded")
    metadata: ChunkMetadata

    @property
    def has_embedding(self) -> bool:
        return len(self.embedding) > 0

    @property
    def category(self) -> Category:
        return self.metadata.category

    @property
    def document_name(self) -> str:
        return self.metadata.document_name


class RankedChunk(BaseModel):
    """A chunk scored against one specific query. Never persisted."""

    model_config = ConfigDict(frozen=True)

    chunk: Chunk
    similarity: float = Field(description="Relevance score for the query")
