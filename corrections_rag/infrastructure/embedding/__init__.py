"""Embedding infrastructure for text-to-vector conversion."""

from .base import EmbeddingProvider
from .deterministic import DeterministicEmbeddingProvider, FeatureBoost, rolling_hash
from .factory import build_embedding_provider, build_embedding_providers
from .remote import HuggingFaceEmbeddingProvider, OpenAIEmbeddingProvider
from .sentence_transformer import SentenceTransformerEmbeddingProvider

__all__ = [
    "EmbeddingProvider",
    "DeterministicEmbeddingProvider",
    "FeatureBoost",
    "rolling_hash",
    "HuggingFaceEmbeddingProvider",
    "OpenAIEmbeddingProvider",
    "SentenceTransformerEmbeddingProvider",
    "build_embedding_provider",
    "build_embedding_providers",
]
