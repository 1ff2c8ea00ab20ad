"""Local embedding provider backed by sentence-transformers."""

import asyncio
from typing import List, Optional, Sequence, cast

from sentence_transformers import SentenceTransformer

from ...modules.common.exceptions import ProviderError, ProviderUnavailableError
from ..logging import get_logger
from .base import EmbeddingProvider

logger = get_logger(__name__)

KNOWN_DIMENSIONS = {
    "all-MiniLM-L6-v2": 384,
    "all-mpnet-base-v2": 768,
}


class SentenceTransformerEmbeddingProvider(EmbeddingProvider):
    """Embeds text with a locally loaded sentence-transformers model.

    Features:
    - Lazy model loading for faster startup
    - Model loading and encoding run in a worker thread
    - Normalized output vectors

    A model that cannot be loaded (not installed, not downloadable) makes the
    provider unavailable rather than crashing the query.
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2", similarity_threshold: float = 0.3, batch_size: int = 32):
        self.model_name = model_name
        self.batch_size = batch_size
        self._similarity_threshold = similarity_threshold
        self._model: Optional[SentenceTransformer] = None
        self._model_lock = asyncio.Lock()

    @property
    def name(self) -> str:
        return "sentence-transformers"

    @property
    def dimension(self) -> int:
        if self._model is not None:
            loaded_dimension = self._model.get_sentence_embedding_dimension()
            if loaded_dimension:
                return int(loaded_dimension)
        return KNOWN_DIMENSIONS.get(self.model_name, 384)

    @property
    def similarity_threshold(self) -> float:
        return self._similarity_threshold

    async def _get_model(self) -> SentenceTransformer:
        """Get model instance, loading it if necessary."""
        if self._model is None:
            async with self._model_lock:
                if self._model is None:
                    logger.info(f"Loading sentence-transformers model {self.model_name}")
                    try:
                        self._model = cast(
                            SentenceTransformer, await asyncio.to_thread(SentenceTransformer, self.model_name)
                        )
                    except (OSError, ValueError, RuntimeError) as exc:
                        raise ProviderUnavailableError(self.name, f"could not load model {self.model_name}: {exc}") from exc
        if self._model is None:
            raise ProviderUnavailableError(self.name, "model failed to load")
        return self._model

    async def embed(self, texts: Sequence[str]) -> List[List[float]]:
        if not texts:
            return []

        if any(not text.strip() for text in texts):
            raise ValueError("All texts must be non-empty")

        model = await self._get_model()

        try:
            embeddings = await asyncio.to_thread(
                model.encode,
                list(texts),
                convert_to_tensor=False,
                normalize_embeddings=True,
                batch_size=self.batch_size,
            )
        except (RuntimeError, ValueError) as exc:
            raise ProviderError(self.name, f"encoding failed: {exc}") from exc

        if hasattr(embeddings, "tolist"):
            return cast(List[List[float]], embeddings.tolist())
        return [embedding.tolist() for embedding in embeddings]
