"""Test configuration and shared fixtures."""

import asyncio
import itertools
import math
from typing import List, Optional, Sequence

import pytest

from corrections_rag.infrastructure.embedding.base import EmbeddingProvider
from corrections_rag.infrastructure.generation.base import GenerationBackend
from corrections_rag.infrastructure.logging import configure_testing_logging, get_query_id
from corrections_rag.modules.chunk.schemas import Category, Chunk, ChunkMetadata, RankedChunk


class StaticEmbeddingProvider(EmbeddingProvider):
    """Returns one fixed vector for every text, or raises a configured error."""

    def __init__(
        self,
        vector: Sequence[float] = (1.0, 0.0),
        name: str = "static",
        similarity_threshold: float = 0.1,
        error: Optional[Exception] = None,
    ):
        self.vector = list(vector)
        self.error = error
        self.calls: List[List[str]] = []
        self._name = name
        self._similarity_threshold = similarity_threshold

    @property
    def name(self) -> str:
        return self._name

    @property
    def dimension(self) -> int:
        return len(self.vector)

    @property
    def similarity_threshold(self) -> float:
        return self._similarity_threshold

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        self.calls.append(list(texts))
        if self.error is not None:
            raise self.error
        return [list(self.vector) for _ in texts]


class FakeGenerationBackend(GenerationBackend):
    """Generation backend that answers, fails or stalls on demand."""

    def __init__(self, name: str, answer: str = "", error: Optional[Exception] = None, delay: float = 0.0):
        self._name = name
        self.answer = answer
        self.error = error
        self.delay = delay
        self.calls: List[tuple] = []
        self.query_ids: List[Optional[str]] = []

    @property
    def name(self) -> str:
        return self._name

    async def generate(self, query: str, context: str) -> str:
        self.calls.append((query, context))
        self.query_ids.append(get_query_id())
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.answer


def unit_vector(similarity: float) -> List[float]:
    """2-d unit vector whose cosine similarity with [1, 0] is `similarity`."""
    return [similarity, math.sqrt(max(0.0, 1.0 - similarity * similarity))]


@pytest.fixture(autouse=True)
def quiet_logging():
    configure_testing_logging()
    yield


@pytest.fixture
def make_chunk():
    """Factory for chunks with sensible defaults."""
    counter = itertools.count()

    def _make_chunk(
        text: str = "Sample chunk text",
        category: Category = Category.TRANSCRIPT,
        embedding: Sequence[float] = (),
        document_name: Optional[str] = None,
        document_id: int = 1,
        chunk_index: Optional[int] = None,
        chunk_id: Optional[str] = None,
        embedding_provider: Optional[str] = None,
    ) -> Chunk:
        number = next(counter)
        return Chunk(
            id=chunk_id or f"chunk-{number}",
            text=text,
            embedding=tuple(embedding),
            metadata=ChunkMetadata(
                document_id=document_id,
                document_name=document_name or f"{category.value}_{document_id}.pdf",
                category=category,
                chunk_index=number if chunk_index is None else chunk_index,
                embedding_provider=embedding_provider,
            ),
        )

    return _make_chunk


@pytest.fixture
def make_ranked(make_chunk):
    """Factory for ranked chunks with a given similarity."""

    def _make_ranked(similarity: float, category: Category = Category.TRANSCRIPT, text: Optional[str] = None) -> RankedChunk:
        chunk = make_chunk(text=text or f"{category.value} text scoring {similarity}", category=category)
        return RankedChunk(chunk=chunk, similarity=similarity)

    return _make_ranked


@pytest.fixture
def static_provider():
    return StaticEmbeddingProvider


@pytest.fixture
def fake_backend():
    return FakeGenerationBackend
