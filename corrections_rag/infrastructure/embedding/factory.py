"""Construction of the embedding provider cascade from settings."""

from typing import Callable, Dict, List, Optional

import httpx

from ..config.settings import Settings, get_settings
from .base import EmbeddingProvider
from .deterministic import DeterministicEmbeddingProvider
from .remote import HuggingFaceEmbeddingProvider, OpenAIEmbeddingProvider
from .sentence_transformer import SentenceTransformerEmbeddingProvider


def _openai(settings: Settings, client: Optional[httpx.AsyncClient]) -> EmbeddingProvider:
    return OpenAIEmbeddingProvider(
        api_key=settings.OPENAI_API_KEY,
        model=settings.OPENAI_EMBEDDING_MODEL,
        base_url=settings.OPENAI_BASE_URL,
        dimension=settings.OPENAI_EMBEDDING_DIMENSION,
        similarity_threshold=settings.OPENAI_EMBEDDING_THRESHOLD,
        timeout=settings.EMBEDDING_TIMEOUT_SECONDS,
        client=client,
    )


def _huggingface(settings: Settings, client: Optional[httpx.AsyncClient]) -> EmbeddingProvider:
    return HuggingFaceEmbeddingProvider(
        api_key=settings.HUGGINGFACE_API_KEY,
        model=settings.HUGGINGFACE_EMBEDDING_MODEL,
        similarity_threshold=settings.HUGGINGFACE_EMBEDDING_THRESHOLD,
        timeout=settings.EMBEDDING_TIMEOUT_SECONDS,
        client=client,
    )


def _sentence_transformer(settings: Settings, client: Optional[httpx.AsyncClient]) -> EmbeddingProvider:
    return SentenceTransformerEmbeddingProvider(
        model_name=settings.SENTENCE_TRANSFORMER_MODEL,
        similarity_threshold=settings.SENTENCE_TRANSFORMER_THRESHOLD,
    )


def _deterministic(settings: Settings, client: Optional[httpx.AsyncClient]) -> EmbeddingProvider:
    return DeterministicEmbeddingProvider(
        dimension=settings.DETERMINISTIC_EMBEDDING_DIMENSION,
        similarity_threshold=settings.DETERMINISTIC_EMBEDDING_THRESHOLD,
    )


PROVIDER_BUILDERS: Dict[str, Callable[[Settings, Optional[httpx.AsyncClient]], EmbeddingProvider]] = {
    "openai": _openai,
    "huggingface": _huggingface,
    "sentence-transformers": _sentence_transformer,
    "deterministic": _deterministic,
}


def build_embedding_provider(
    name: str, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None
) -> EmbeddingProvider:
    """Build one provider by name.

    Raises:
        ValueError: If the provider name is unknown
    """
    builder = PROVIDER_BUILDERS.get(name)
    if builder is None:
        raise ValueError(f"Unknown embedding provider: {name}. Available: {', '.join(PROVIDER_BUILDERS)}")
    return builder(settings or get_settings(), client)


def build_embedding_providers(
    settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None
) -> List[EmbeddingProvider]:
    """Build the ordered provider cascade named by EMBEDDING_PROVIDERS.

    Providers are built even when their credentials are missing; they report
    ProviderUnavailableError when used, which advances the cascade.
    """
    settings = settings or get_settings()
    return [build_embedding_provider(name, settings, client) for name in settings.EMBEDDING_PROVIDERS_LIST]
