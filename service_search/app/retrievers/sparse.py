"""Sparse (fuzzy keyword) retrieval over the document corpus."""

import asyncio
from typing import List, Optional

import structlog

from libs.common.metrics import MetricsCollector
from libs.vector_store.base import DocumentStore
from ..models import SearchResult, SearchResultKind
from .fuzzy import FuzzyMatcher

logger = structlog.get_logger("search_service.sparse_retriever")


class SparseRetriever:
    """Fuzzy-matches the query against a fresh snapshot of the corpus.

    No index is kept between calls: every request lists the corpus and
    matches it from scratch, so newly ingested documents are visible
    immediately. Matching runs in a worker thread to keep the event loop
    free for sibling strategies. Failures degrade to an empty list.
    """

    def __init__(
        self,
        corpus: DocumentStore,
        matcher: Optional[FuzzyMatcher] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.corpus = corpus
        self.matcher = matcher or FuzzyMatcher()
        self.metrics = metrics

    async def retrieve(self, query: str, max_results: int = 5) -> List[SearchResult]:
        """Return the ``max_results`` most similar documents, best first."""
        try:
            documents = await self.corpus.list_documents()
            matches = await asyncio.to_thread(self.matcher.search, query, documents, max_results)

            results = [
                SearchResult(
                    document=document,
                    similarity=1.0 - score,
                    score=1.0 - score,
                    kind=SearchResultKind.SPARSE,
                )
                for document, score in matches
            ]
        except Exception as e:
            logger.error("Sparse retrieval failed", error=str(e), error_type=type(e).__name__)
            if self.metrics:
                self.metrics.record_strategy_failure("sparse")
            return []

        logger.debug(
            "Sparse retrieval completed",
            corpus_size=len(documents),
            results_count=len(results)
        )
        return results
