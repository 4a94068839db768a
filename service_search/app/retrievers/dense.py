"""Dense retrieval over stored document embeddings."""

from typing import List, Optional

import structlog

from libs.common.metrics import MetricsCollector
from libs.vector_store.base import DocumentStore
from ..encoders.embedding_provider import EmbeddingProvider
from ..models import SearchResult, SearchResultKind

logger = structlog.get_logger("search_service.dense_retriever")


class DenseRetriever:
    """Embeds the query and ranks stored documents by vector similarity.

    Any failure (embedding, store connection, query) is logged and turns
    into an empty result list; nothing propagates to the caller.
    """

    def __init__(
        self,
        store: DocumentStore,
        embedder: EmbeddingProvider,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.store = store
        self.embedder = embedder
        self.metrics = metrics

    async def retrieve(
        self,
        query: str,
        max_results: int = 5,
        threshold: float = 0.6
    ) -> List[SearchResult]:
        """Return up to ``max_results`` documents above ``threshold``, best first."""
        try:
            embedding = await self.embedder.embed(query)
            matches = await self.store.similarity_query(embedding, threshold, max_results)

            results = [
                SearchResult(
                    document=match.document,
                    similarity=match.similarity,
                    score=match.similarity,
                    kind=SearchResultKind.DENSE,
                )
                for match in matches
            ]
        except Exception as e:
            logger.error("Dense retrieval failed", error=str(e), error_type=type(e).__name__)
            if self.metrics:
                self.metrics.record_strategy_failure("dense")
            return []

        results.sort(key=lambda result: result.similarity, reverse=True)
        logger.debug("Dense retrieval completed", results_count=len(results))
        return results
