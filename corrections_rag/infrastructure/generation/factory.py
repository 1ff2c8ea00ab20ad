"""Construction of the generation backend cascade from settings."""

from typing import List, Optional

import httpx

from ..config.settings import Settings, get_settings
from .backends import CohereBackend, GeminiBackend, OpenAICompatibleChatBackend, TogetherBackend
from .base import GenerationBackend


def build_generation_backend(
    name: str, settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None
) -> GenerationBackend:
    """Build one backend by name.

    Raises:
        ValueError: If the backend name is unknown
    """
    settings = settings or get_settings()
    common = {
        "temperature": settings.GENERATION_TEMPERATURE,
        "max_tokens": settings.GENERATION_MAX_TOKENS,
        "timeout": settings.GENERATION_TIMEOUT_SECONDS,
        "client": client,
    }

    if name == "openai":
        return OpenAICompatibleChatBackend(
            "openai", settings.OPENAI_API_KEY, settings.OPENAI_CHAT_MODEL, settings.OPENAI_BASE_URL, **common
        )
    if name == "groq":
        return OpenAICompatibleChatBackend("groq", settings.GROQ_API_KEY, settings.GROQ_MODEL, settings.GROQ_BASE_URL, **common)
    if name == "gemini":
        return GeminiBackend("gemini", settings.GOOGLE_API_KEY, settings.GEMINI_MODEL, settings.GEMINI_BASE_URL, **common)
    if name == "cohere":
        return CohereBackend("cohere", settings.COHERE_API_KEY, settings.COHERE_MODEL, settings.COHERE_BASE_URL, **common)
    if name == "together":
        return TogetherBackend(
            "together", settings.TOGETHER_API_KEY, settings.TOGETHER_MODEL, settings.TOGETHER_BASE_URL, **common
        )

    raise ValueError(f"Unknown generation backend: {name}. Available: openai, groq, gemini, cohere, together")


def build_generation_backends(
    settings: Optional[Settings] = None, client: Optional[httpx.AsyncClient] = None
) -> List[GenerationBackend]:
    """Build the ordered backend cascade named by GENERATION_BACKENDS."""
    settings = settings or get_settings()
    return [build_generation_backend(name, settings, client) for name in settings.GENERATION_BACKENDS_LIST]
