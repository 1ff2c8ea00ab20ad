"""Tests for building the embedding provider cascade from settings."""

import pytest

from corrections_rag.infrastructure.config import Settings
from corrections_rag.infrastructure.embedding import (
    DeterministicEmbeddingProvider,
    HuggingFaceEmbeddingProvider,
    OpenAIEmbeddingProvider,
    SentenceTransformerEmbeddingProvider,
    build_embedding_provider,
    build_embedding_providers,
)


class TestBuildEmbeddingProviders:
    """Test provider construction and the per-provider thresholds."""

    def test_cascade_follows_configured_order(self):
        settings = Settings(EMBEDDING_PROVIDERS="deterministic, OpenAI ,huggingface")

        providers = build_embedding_providers(settings)

        assert [provider.name for provider in providers] == ["deterministic", "openai", "huggingface"]

    def test_thresholds_belong_to_providers(self):
        settings = Settings(EMBEDDING_PROVIDERS="openai,huggingface,sentence-transformers,deterministic")

        providers = build_embedding_providers(settings)

        assert isinstance(providers[0], OpenAIEmbeddingProvider)
        assert isinstance(providers[1], HuggingFaceEmbeddingProvider)
        assert isinstance(providers[2], SentenceTransformerEmbeddingProvider)
        assert isinstance(providers[3], DeterministicEmbeddingProvider)
        assert [provider.similarity_threshold for provider in providers] == [0.7, 0.3, 0.3, 0.01]

    def test_settings_are_applied(self):
        settings = Settings(
            OPENAI_API_KEY="sk-test",
            OPENAI_EMBEDDING_THRESHOLD=0.5,
            DETERMINISTIC_EMBEDDING_DIMENSION=512,
        )

        openai = build_embedding_provider("openai", settings)
        deterministic = build_embedding_provider("deterministic", settings)

        assert openai.api_key == "sk-test"
        assert openai.similarity_threshold == 0.5
        assert deterministic.dimension == 512

    def test_sentence_transformer_is_not_loaded_at_build_time(self):
        provider = build_embedding_provider("sentence-transformers", Settings())
        assert provider._model is None

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown embedding provider"):
            build_embedding_provider("word2vec", Settings())

    def test_empty_cascade(self):
        assert build_embedding_providers(Settings(EMBEDDING_PROVIDERS="")) == []
