"""Chunk storage interface and an in-memory implementation."""

from abc import ABC, abstractmethod
from typing import Dict, Sequence, Tuple

from ...infrastructure.logging import get_logger
from .schemas import Category, Chunk

logger = get_logger(__name__)


class ChunkStore(ABC):
    """Read interface the retrieval core consumes from document storage.

    Implementations must hand out snapshots: a returned sequence never changes
    after the call, even if documents are re-processed concurrently.
    """

    @abstractmethod
    async def get_all_chunks(self) -> Sequence[Chunk]:
        """Return every stored chunk."""
        pass

    @abstractmethod
    async def get_chunks_by_category(self, category: Category) -> Sequence[Chunk]:
        """Return the stored chunks of one category."""
        pass


class InMemoryChunkStore(ChunkStore):
    """Chunk store keeping one immutable tuple of chunks per document.

    Writers swap whole tuples, so readers holding a snapshot are never affected
    by re-processing or deletion.
    """

    def __init__(self):
        self._documents: Dict[int, Tuple[Chunk, ...]] = {}

    async def get_all_chunks(self) -> Tuple[Chunk, ...]:
        documents = dict(self._documents)
        return tuple(chunk for document_id in sorted(documents) for chunk in documents[document_id])

    async def get_chunks_by_category(self, category: Category) -> Tuple[Chunk, ...]:
        return tuple(chunk for chunk in await self.get_all_chunks() if chunk.metadata.category == category)

    async def replace_document_chunks(self, document_id: int, chunks: Sequence[Chunk]) -> None:
        """Replace all chunks of a document.

        Args:
            document_id: Owning document
            chunks: New chunks, which must all belong to document_id

        Raises:
            ValueError: If a chunk belongs to another document
        """
        for chunk in chunks:
            if chunk.metadata.document_id != document_id:
                raise ValueError(f"Chunk {chunk.id} belongs to document {chunk.metadata.document_id}, not {document_id}")

        ordered = tuple(sorted(chunks, key=lambda chunk: chunk.metadata.chunk_index))
        if ordered:
            self._documents[document_id] = ordered
        else:
            self._documents.pop(document_id, None)

        logger.debug(f"Stored {len(ordered)} chunks for document {document_id}")

    async def delete_document(self, document_id: int) -> bool:
        """Delete a document and, with it, all of its chunks.

        Returns:
            True if the document was found and removed, False otherwise
        """
        removed = self._documents.pop(document_id, None)
        return removed is not None

    async def document_ids(self) -> Tuple[int, ...]:
        return tuple(sorted(self._documents))
