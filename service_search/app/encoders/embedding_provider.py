"""Embedding provider for query vectors.

Wraps a SentenceTransformer model behind a small async interface. The model
is loaded lazily on the first ``embed`` call and then reused for the
lifetime of the provider; concurrent first callers wait on a lock so the
model is only ever loaded once. Providers are created by the service and
injected into the dense retriever.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Any, List, Optional

import structlog

from libs.common.metrics import MetricsCollector
from ..errors import EmbeddingFailure

logger = structlog.get_logger("search_service.embedding_provider")


class EmbeddingProvider(ABC):
    """Turns text into a fixed-length vector."""

    @abstractmethod
    async def embed(self, text: str) -> List[float]:
        """Embed ``text``; raises ``EmbeddingFailure`` on any error."""
        pass


class SentenceTransformerEmbeddingProvider(EmbeddingProvider):
    """Lazily-loaded SentenceTransformer embedding provider.

    Parameters
    - model_name: Hugging Face model id (defaults to all-MiniLM-L6-v2)
    - device: Optional torch device; ``None`` lets the library decide
    - metrics: Optional collector for embedding timings
    """

    def __init__(
        self,
        model_name: str = "sentence-transformers/all-MiniLM-L6-v2",
        device: Optional[str] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.model_name = model_name
        self.device = device
        self.metrics = metrics
        self._model: Optional[Any] = None
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._model is not None

    def _load_model(self) -> Any:
        # Imported on first use; pulling in torch is slow.
        from sentence_transformers import SentenceTransformer

        return SentenceTransformer(self.model_name, device=self.device)

    async def _get_model(self) -> Any:
        if self._model is not None:
            return self._model

        async with self._lock:
            if self._model is None:
                started = time.time()
                self._model = await asyncio.to_thread(self._load_model)
                logger.info(
                    "Loaded embedding model",
                    model_name=self.model_name,
                    load_seconds=round(time.time() - started, 3)
                )
        return self._model

    async def embed(self, text: str) -> List[float]:
        """Embed ``text`` with mean pooling and L2 normalisation."""
        started = time.time()
        try:
            model = await self._get_model()
            vector = await asyncio.to_thread(
                model.encode,
                text,
                normalize_embeddings=True,
                convert_to_numpy=True,
            )
        except Exception as e:
            logger.error("Embedding generation failed", model_name=self.model_name, error=str(e))
            raise EmbeddingFailure(f"Failed to generate embedding: {e}") from e

        if self.metrics:
            self.metrics.record_embedding(self.model_name, time.time() - started)
        return [float(value) for value in vector.tolist()]
