"""Answer generation backends."""

from .backends import CohereBackend, GeminiBackend, HttpGenerationBackend, OpenAICompatibleChatBackend, TogetherBackend
from .base import SYSTEM_PROMPT, GenerationBackend
from .factory import build_generation_backend, build_generation_backends

__all__ = [
    "GenerationBackend",
    "HttpGenerationBackend",
    "OpenAICompatibleChatBackend",
    "GeminiBackend",
    "CohereBackend",
    "TogetherBackend",
    "SYSTEM_PROMPT",
    "build_generation_backend",
    "build_generation_backends",
]
