import logging
import os
from enum import Enum
from typing import List

from pydantic_settings import BaseSettings
from starlette.config import Config

logger = logging.getLogger(__name__)

current_file_dir = os.path.dirname(os.path.realpath(__file__))
project_root = os.path.abspath(os.path.join(current_file_dir, "..", "..", ".."))

env_paths = [
    "/code/.env",
    os.path.join(project_root, ".env"),
    "/.env",
]

env_path = next((path for path in env_paths if os.path.isfile(path)), None)
logger.info(f"Using environment file at: {env_path}")

config = Config(env_path)


def _split_csv(value: str) -> List[str]:
    return [item.strip().lower() for item in value.split(",") if item.strip()]


class EnvironmentOption(str, Enum):
    """Environment options for the application."""

    PRODUCTION = "production"
    STAGING = "staging"
    DEVELOPMENT = "development"
    LOCAL = "local"
    TESTING = "testing"


class EnvironmentSettings(BaseSettings):
    """Environment-related settings."""

    ENVIRONMENT: EnvironmentOption = config("ENVIRONMENT", default=EnvironmentOption.DEVELOPMENT, cast=EnvironmentOption)


class AppSettings(BaseSettings):
    """Application-related settings."""

    APP_NAME: str = "Corrections RAG"
    APP_DESCRIPTION: str = "Multi-hop retrieval over supervision transcripts and policy documents"
    DEBUG: bool = config("DEBUG", default=False, cast=bool)
    VERSION: str = "0.1.0"


class EmbeddingSettings(BaseSettings):
    """Embedding provider settings.

    Each provider carries its own similarity threshold: scores produced by
    different models live on different scales, so the threshold travels with
    the vectors rather than with the call site.
    """

    EMBEDDING_PROVIDERS: str = config("EMBEDDING_PROVIDERS", default="openai,huggingface,deterministic")
    EMBEDDING_TIMEOUT_SECONDS: float = config("EMBEDDING_TIMEOUT_SECONDS", default=30.0, cast=float)

    OPENAI_API_KEY: str = config("OPENAI_API_KEY", default="")
    OPENAI_BASE_URL: str = config("OPENAI_BASE_URL", default="https://api.openai.com/v1")
    OPENAI_EMBEDDING_MODEL: str = config("OPENAI_EMBEDDING_MODEL", default="text-embedding-3-small")
    OPENAI_EMBEDDING_DIMENSION: int = config("OPENAI_EMBEDDING_DIMENSION", default=1536, cast=int)
    OPENAI_EMBEDDING_THRESHOLD: float = config("OPENAI_EMBEDDING_THRESHOLD", default=0.7, cast=float)

    HUGGINGFACE_API_KEY: str = config("HUGGINGFACE_API_KEY", default="")
    HUGGINGFACE_EMBEDDING_MODEL: str = config(
        "HUGGINGFACE_EMBEDDING_MODEL", default="sentence-transformers/all-MiniLM-L6-v2"
    )
    HUGGINGFACE_EMBEDDING_THRESHOLD: float = config("HUGGINGFACE_EMBEDDING_THRESHOLD", default=0.3, cast=float)

    SENTENCE_TRANSFORMER_MODEL: str = config("SENTENCE_TRANSFORMER_MODEL", default="all-MiniLM-L6-v2")
    SENTENCE_TRANSFORMER_THRESHOLD: float = config("SENTENCE_TRANSFORMER_THRESHOLD", default=0.3, cast=float)

    DETERMINISTIC_EMBEDDING_DIMENSION: int = config("DETERMINISTIC_EMBEDDING_DIMENSION", default=384, cast=int)
    DETERMINISTIC_EMBEDDING_THRESHOLD: float = config("DETERMINISTIC_EMBEDDING_THRESHOLD", default=0.01, cast=float)

    @property
    def EMBEDDING_PROVIDERS_LIST(self) -> List[str]:
        """Get the provider cascade as an ordered list of names."""
        return _split_csv(self.EMBEDDING_PROVIDERS)


class GenerationSettings(BaseSettings):
    """Answer generation backend settings."""

    GENERATION_BACKENDS: str = config("GENERATION_BACKENDS", default="openai,groq,gemini,cohere,together")
    GENERATION_TIMEOUT_SECONDS: float = config("GENERATION_TIMEOUT_SECONDS", default=30.0, cast=float)
    GENERATION_TEMPERATURE: float = config("GENERATION_TEMPERATURE", default=0.1, cast=float)
    GENERATION_MAX_TOKENS: int = config("GENERATION_MAX_TOKENS", default=1000, cast=int)

    OPENAI_CHAT_MODEL: str = config("OPENAI_CHAT_MODEL", default="gpt-4o")

    GROQ_API_KEY: str = config("GROQ_API_KEY", default="")
    GROQ_BASE_URL: str = config("GROQ_BASE_URL", default="https://api.groq.com/openai/v1")
    GROQ_MODEL: str = config("GROQ_MODEL", default="llama3-8b-8192")

    GOOGLE_API_KEY: str = config("GOOGLE_API_KEY", default="")
    GEMINI_BASE_URL: str = config("GEMINI_BASE_URL", default="https://generativelanguage.googleapis.com/v1beta")
    GEMINI_MODEL: str = config("GEMINI_MODEL", default="gemini-pro")

    COHERE_API_KEY: str = config("COHERE_API_KEY", default="")
    COHERE_BASE_URL: str = config("COHERE_BASE_URL", default="https://api.cohere.ai/v1")
    COHERE_MODEL: str = config("COHERE_MODEL", default="command-light")

    TOGETHER_API_KEY: str = config("TOGETHER_API_KEY", default="")
    TOGETHER_BASE_URL: str = config("TOGETHER_BASE_URL", default="https://api.together.xyz")
    TOGETHER_MODEL: str = config("TOGETHER_MODEL", default="togethercomputer/llama-2-7b-chat")

    @property
    def GENERATION_BACKENDS_LIST(self) -> List[str]:
        """Get the generation cascade as an ordered list of names."""
        return _split_csv(self.GENERATION_BACKENDS)


class RetrievalSettings(BaseSettings):
    """Retrieval, fusion and chunking settings."""

    TRANSCRIPT_TOP_K: int = config("TRANSCRIPT_TOP_K", default=3, cast=int)
    POLICY_TOP_K: int = config("POLICY_TOP_K", default=3, cast=int)
    FUSION_TOP_N: int = config("FUSION_TOP_N", default=8, cast=int)
    EXCERPT_MAX_LENGTH: int = config("EXCERPT_MAX_LENGTH", default=300, cast=int)
    QUERY_MAX_LENGTH: int = config("QUERY_MAX_LENGTH", default=2000, cast=int)

    CHUNK_SIZE: int = config("CHUNK_SIZE", default=1000, cast=int)
    CHUNK_OVERLAP: int = config("CHUNK_OVERLAP", default=200, cast=int)


class LoggingSettings(BaseSettings):
    """Centralized logging configuration settings."""

    LOG_LEVEL: str = config("LOG_LEVEL", default="INFO")
    LOG_FORMAT: str = config("LOG_FORMAT", default="structured")  # "simple", "detailed", "structured", "json"

    LOG_CONSOLE_ENABLED: bool = config("LOG_CONSOLE_ENABLED", default=True, cast=bool)
    LOG_FILE_ENABLED: bool = config("LOG_FILE_ENABLED", default=False, cast=bool)
    LOG_FILE_PATH: str = config("LOG_FILE_PATH", default="logs/corrections_rag.log")
    LOG_FILE_MAX_SIZE: int = config("LOG_FILE_MAX_SIZE", default=10485760, cast=int)
    LOG_FILE_BACKUP_COUNT: int = config("LOG_FILE_BACKUP_COUNT", default=5, cast=int)

    LOG_DEVELOPMENT_VERBOSE: bool = config("LOG_DEVELOPMENT_VERBOSE", default=True, cast=bool)
    LOG_PRODUCTION_OPTIMIZE: bool = config("LOG_PRODUCTION_OPTIMIZE", default=True, cast=bool)

    @property
    def LOG_LEVEL_INT(self) -> int:
        """Convert string log level to integer."""
        level_map = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return level_map.get(self.LOG_LEVEL.upper(), logging.INFO)


class Settings(
    EnvironmentSettings,
    AppSettings,
    EmbeddingSettings,
    GenerationSettings,
    RetrievalSettings,
    LoggingSettings,
):
    """Main settings class that combines all setting categories."""

    pass


settings = Settings()


def get_settings() -> Settings:
    """Get application settings.

    Returns:
        The application settings.
    """
    return settings
