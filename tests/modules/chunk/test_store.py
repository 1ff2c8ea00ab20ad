"""Tests for chunk schemas and the in-memory chunk store."""

import pydantic
import pytest

from corrections_rag.modules.chunk.schemas import Category, Chunk, ChunkMetadata
from corrections_rag.modules.chunk.store import InMemoryChunkStore


class TestChunkSchema:
    """Test chunk validation and immutability."""

    def test_defaults(self, make_chunk):
        chunk = make_chunk(text="Some text", document_name="Nathan_Transcript_1.pdf")

        assert chunk.embedding == ()
        assert not chunk.has_embedding
        assert chunk.category == Category.TRANSCRIPT
        assert chunk.document_name == "Nathan_Transcript_1.pdf"
        assert chunk.metadata.embedding_provider is None

    def test_has_embedding(self, make_chunk):
        assert make_chunk(embedding=[0.1, 0.2]).has_embedding

    def test_chunks_are_frozen(self, make_chunk):
        chunk = make_chunk()

        with pytest.raises(pydantic.ValidationError):
            chunk.text = "changed"

    def test_empty_text_rejected(self):
        metadata = ChunkMetadata(document_id=1, document_name="doc.pdf", category=Category.POLICY, chunk_index=0)

        with pytest.raises(pydantic.ValidationError):
            Chunk(id="c1", text="", metadata=metadata)

    def test_negative_chunk_index_rejected(self):
        with pytest.raises(pydantic.ValidationError):
            ChunkMetadata(document_id=1, document_name="doc.pdf", category=Category.POLICY, chunk_index=-1)

    def test_category_from_string(self):
        metadata = ChunkMetadata(document_id=1, document_name="doc.pdf", category="policy", chunk_index=0)
        assert metadata.category is Category.POLICY


class TestInMemoryChunkStore:
    """Test storage, snapshots and cascade deletion."""

    @pytest.fixture
    def store(self):
        return InMemoryChunkStore()

    @pytest.mark.asyncio
    async def test_empty_store(self, store):
        assert await store.get_all_chunks() == ()
        assert await store.get_chunks_by_category(Category.POLICY) == ()

    @pytest.mark.asyncio
    async def test_replace_orders_by_chunk_index(self, store, make_chunk):
        chunks = [
            make_chunk(text="second", document_id=1, chunk_index=1),
            make_chunk(text="first", document_id=1, chunk_index=0),
        ]

        await store.replace_document_chunks(1, chunks)

        assert [chunk.text for chunk in await store.get_all_chunks()] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_chunks_grouped_by_document(self, store, make_chunk):
        await store.replace_document_chunks(2, [make_chunk(text="doc two", document_id=2, chunk_index=0)])
        await store.replace_document_chunks(1, [make_chunk(text="doc one", document_id=1, chunk_index=0)])

        assert [chunk.text for chunk in await store.get_all_chunks()] == ["doc one", "doc two"]
        assert await store.document_ids() == (1, 2)

    @pytest.mark.asyncio
    async def test_replace_rejects_foreign_chunks(self, store, make_chunk):
        with pytest.raises(ValueError):
            await store.replace_document_chunks(1, [make_chunk(document_id=2)])

    @pytest.mark.asyncio
    async def test_reprocessing_replaces_chunks(self, store, make_chunk):
        await store.replace_document_chunks(1, [make_chunk(text=f"old {i}", document_id=1, chunk_index=i) for i in range(3)])
        await store.replace_document_chunks(1, [make_chunk(text="new", document_id=1, chunk_index=0)])

        assert [chunk.text for chunk in await store.get_all_chunks()] == ["new"]

    @pytest.mark.asyncio
    async def test_snapshot_unaffected_by_later_writes(self, store, make_chunk):
        await store.replace_document_chunks(1, [make_chunk(text="original", document_id=1, chunk_index=0)])
        snapshot = await store.get_all_chunks()

        await store.replace_document_chunks(1, [make_chunk(text="replacement", document_id=1, chunk_index=0)])
        await store.delete_document(1)

        assert [chunk.text for chunk in snapshot] == ["original"]

    @pytest.mark.asyncio
    async def test_get_chunks_by_category(self, store, make_chunk):
        await store.replace_document_chunks(1, [make_chunk(text="talk", category=Category.TRANSCRIPT, document_id=1)])
        await store.replace_document_chunks(2, [make_chunk(text="rule", category=Category.POLICY, document_id=2)])

        policies = await store.get_chunks_by_category(Category.POLICY)

        assert [chunk.text for chunk in policies] == ["rule"]

    @pytest.mark.asyncio
    async def test_delete_document_cascades(self, store, make_chunk):
        await store.replace_document_chunks(1, [make_chunk(document_id=1, chunk_index=i) for i in range(2)])
        await store.replace_document_chunks(2, [make_chunk(document_id=2, chunk_index=0)])

        assert await store.delete_document(1) is True
        assert all(chunk.metadata.document_id == 2 for chunk in await store.get_all_chunks())
        assert await store.delete_document(1) is False

    @pytest.mark.asyncio
    async def test_replace_with_nothing_removes_document(self, store, make_chunk):
        await store.replace_document_chunks(1, [make_chunk(document_id=1)])
        await store.replace_document_chunks(1, [])

        assert await store.document_ids() == ()
