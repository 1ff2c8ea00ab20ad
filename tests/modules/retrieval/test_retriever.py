"""Tests for MultiHopRetriever."""

import pytest

from corrections_rag.modules.chunk.schemas import Category
from corrections_rag.modules.common.exceptions import ProviderError, ProviderUnavailableError
from corrections_rag.modules.retrieval.services import MultiHopRetriever

from conftest import unit_vector


@pytest.fixture
def corpus(make_chunk):
    return [
        make_chunk(text="Nathan talked about taxes", category=Category.TRANSCRIPT, embedding=unit_vector(0.9)),
        make_chunk(text="Grievance policy", category=Category.POLICY, embedding=unit_vector(0.8)),
        make_chunk(text="Robert talked about work", category=Category.TRANSCRIPT, embedding=unit_vector(0.5)),
        make_chunk(text="Programming policy", category=Category.POLICY, embedding=unit_vector(0.3)),
        make_chunk(text="Unrelated transcript", category=Category.TRANSCRIPT, embedding=unit_vector(0.05)),
        make_chunk(text="Not embedded yet", category=Category.POLICY),
    ]


class TestMultiHopRetriever:
    """Test single-embedding, two-category retrieval."""

    @pytest.mark.asyncio
    async def test_one_embedding_call_for_both_categories(self, static_provider, corpus):
        provider = static_provider()
        retriever = MultiHopRetriever(provider)

        result = await retriever.retrieve("What did Nathan say?", corpus)

        assert provider.calls == [["What did Nathan say?"]]
        assert result.query_embedding == [1.0, 0.0]

    @pytest.mark.asyncio
    async def test_categories_are_partitioned(self, static_provider, corpus):
        result = await MultiHopRetriever(static_provider()).retrieve("query", corpus)

        assert [ranked.chunk.text for ranked in result.transcript_chunks] == [
            "Nathan talked about taxes",
            "Robert talked about work",
        ]
        assert [ranked.chunk.text for ranked in result.policy_chunks] == ["Grievance policy", "Programming policy"]
        assert all(ranked.chunk.category == Category.TRANSCRIPT for ranked in result.transcript_chunks)
        assert all(ranked.chunk.category == Category.POLICY for ranked in result.policy_chunks)
        assert result.total_chunks == 4

    @pytest.mark.asyncio
    async def test_threshold_defaults_to_provider_threshold(self, static_provider, corpus):
        result = await MultiHopRetriever(static_provider(similarity_threshold=0.6)).retrieve("query", corpus)

        assert [ranked.chunk.text for ranked in result.transcript_chunks] == ["Nathan talked about taxes"]
        assert [ranked.chunk.text for ranked in result.policy_chunks] == ["Grievance policy"]

    @pytest.mark.asyncio
    async def test_explicit_threshold_overrides_provider(self, static_provider, corpus):
        result = await MultiHopRetriever(static_provider(similarity_threshold=0.99)).retrieve(
            "query", corpus, threshold=0.0
        )

        assert len(result.transcript_chunks) == 3
        assert len(result.policy_chunks) == 2

    @pytest.mark.asyncio
    async def test_top_k_per_category(self, static_provider, corpus):
        result = await MultiHopRetriever(static_provider()).retrieve("query", corpus, transcript_top_k=1, policy_top_k=0)

        assert len(result.transcript_chunks) == 1
        assert result.policy_chunks == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [ProviderUnavailableError("static", "no key"), ProviderError("static", "HTTP 500 Internal Server Error")],
    )
    async def test_embedding_failure_propagates(self, static_provider, corpus, error):
        retriever = MultiHopRetriever(static_provider(error=error))

        with pytest.raises(type(error)):
            await retriever.retrieve("query", corpus)

    @pytest.mark.asyncio
    async def test_empty_corpus_is_unavailable(self, static_provider):
        provider = static_provider()

        with pytest.raises(ProviderUnavailableError):
            await MultiHopRetriever(provider).retrieve("query", [])

        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_ranks_only_chunks_from_own_provider(self, static_provider, make_chunk):
        own = make_chunk(text="Own vectors", embedding=unit_vector(0.9), embedding_provider="static")
        foreign = make_chunk(text="Foreign vectors", embedding=unit_vector(0.95), embedding_provider="huggingface")

        result = await MultiHopRetriever(static_provider()).retrieve("query", [own, foreign])

        assert [ranked.chunk.text for ranked in result.transcript_chunks] == ["Own vectors"]

    @pytest.mark.asyncio
    async def test_no_comparable_chunks_is_unavailable(self, static_provider, make_chunk):
        provider = static_provider(name="deterministic")
        chunks = [
            make_chunk(embedding=unit_vector(0.9), embedding_provider="openai"),
            make_chunk(embedding=[1.0, 0.0, 0.0]),
        ]

        with pytest.raises(ProviderUnavailableError, match="no stored chunks"):
            await MultiHopRetriever(provider).retrieve("query", chunks)

        assert provider.calls == []

    def test_untagged_chunks_matched_by_dimension(self, static_provider, make_chunk):
        retriever = MultiHopRetriever(static_provider())
        matching = make_chunk(embedding=unit_vector(0.5))
        wider = make_chunk(embedding=[1.0, 0.0, 0.0])
        unembedded = make_chunk()

        assert retriever.comparable_chunks([matching, wider, unembedded]) == [matching]

    def test_name_comes_from_provider(self, static_provider):
        assert MultiHopRetriever(static_provider(name="openai")).name == "openai"
