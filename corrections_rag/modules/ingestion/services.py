"""Document indexing: chunking, embedding and storing document text."""

import re
import uuid
from typing import List, Optional

from ...infrastructure.embedding.base import EmbeddingProvider
from ...infrastructure.logging import get_logger
from ..chunk.schemas import Category, Chunk, ChunkMetadata
from ..chunk.store import InMemoryChunkStore
from ..common.exceptions import BackendError

logger = get_logger(__name__)

CHUNK_NAMESPACE = uuid.uuid5(uuid.NAMESPACE_URL, "corrections-rag/chunk")

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


def chunk_id_for(document_id: int, chunk_index: int) -> str:
    """Stable chunk ID, identical every time a document is re-processed."""
    return str(uuid.uuid5(CHUNK_NAMESPACE, f"{document_id}:{chunk_index}"))


class DocumentIndexingService:
    """Turns extracted document text into stored, embedded chunks.

    Text is split on sentence boundaries into chunks of at most `chunk_size`
    characters (a single longer sentence becomes its own chunk), each
    starting with the last `chunk_overlap` characters of the previous one.
    All chunk texts of a document are embedded in one provider call.
    """

    def __init__(
        self,
        provider: EmbeddingProvider,
        store: InMemoryChunkStore,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError("chunk_overlap must be between 0 and chunk_size")

        self.provider = provider
        self.store = store
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def split_text(self, text: str) -> List[str]:
        """Split text into overlapping chunks, in document order."""
        sentences = [sentence.strip() for sentence in _SENTENCE_SPLIT.split(text) if sentence.strip()]

        chunks = []
        current_chunk = ""

        for sentence in sentences:
            test_chunk = current_chunk + " " + sentence if current_chunk else sentence

            if len(test_chunk) <= self.chunk_size:
                current_chunk = test_chunk
            elif current_chunk:
                chunks.append(current_chunk)

                overlap_start = max(0, len(current_chunk) - self.chunk_overlap)
                overlap_text = current_chunk[overlap_start:] if self.chunk_overlap else ""
                current_chunk = overlap_text + " " + sentence if overlap_text else sentence
            else:
                current_chunk = sentence

        if current_chunk:
            chunks.append(current_chunk)

        return chunks

    async def index_document(self, document_id: int, document_name: str, category: Category, text: str) -> List[Chunk]:
        """Chunk, embed and store a document, replacing any earlier chunks.

        When the provider fails the chunks are stored without embeddings, so
        they remain reachable through content analysis.

        Args:
            document_id: ID of the document
            document_name: Display name of the document
            category: Collection the document belongs to
            text: Extracted document text

        Returns:
            The stored chunks
        """
        texts = self.split_text(text)
        if not texts:
            logger.info(f"Document {document_id} ({document_name}) has no text to index")
            await self.store.replace_document_chunks(document_id, [])
            return []

        embeddings: Optional[List[List[float]]] = None
        try:
            embeddings = await self.provider.embed(texts)
        except BackendError as exc:
            logger.warning(f"Storing {len(texts)} chunks of {document_name} without embeddings: {exc}")

        embedding_provider = self.provider.name if embeddings else None

        chunks = []
        for index, chunk_text in enumerate(texts):
            chunks.append(
                Chunk(
                    id=chunk_id_for(document_id, index),
                    text=chunk_text,
                    embedding=tuple(embeddings[index]) if embeddings else (),
                    metadata=ChunkMetadata(
                        document_id=document_id,
                        document_name=document_name,
                        category=category,
                        chunk_index=index,
                        embedding_provider=embedding_provider,
                    ),
                )
            )

        await self.store.replace_document_chunks(document_id, chunks)
        logger.info(f"Indexed {len(chunks)} chunks for {document_name} using {self.provider.name}")
        return chunks

    async def delete_document(self, document_id: int) -> bool:
        """Remove a document and all of its chunks.

        Returns:
            True if the document had stored chunks
        """
        return await self.store.delete_document(document_id)
