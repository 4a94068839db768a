"""Hybrid search manager.

Runs dense, sparse and web retrieval concurrently, fuses the document
results with weighted score fusion, truncates, and assembles a single
citation-numbered ``HybridSearchResult``.

Failures degrade in two layers. Each retrieval adapter already returns an
empty list when its own collaborators fail; on top of that the concurrent
join settles every branch, so a branch that still raises (or exceeds the
optional per-branch deadline) only empties its own slot. Anything else that
goes wrong while fusing or assembling degrades the whole call to an empty
result. ``search`` never raises.
"""

import asyncio
import time
from typing import Any, Awaitable, Dict, List, Mapping, Optional, Union

import structlog

from libs.common.config import SearchServiceConfig
from libs.common.logging import log_performance
from libs.common.metrics import MetricsCollector
from libs.vector_store.base import DocumentStore
from libs.vector_store.factory import create_document_store_from_env
from ..encoders.embedding_provider import EmbeddingProvider, SentenceTransformerEmbeddingProvider
from ..errors import OrchestratorFailure
from ..models import (
    DEFAULT_SEARCH_CONFIG,
    HybridSearchResult,
    RetrievalMethod,
    RetrievalMethodKind,
    SearchConfig,
    SearchResult,
    WebSearchResult,
    merge_search_config,
)
from ..ranking.fusion import combine_results, compute_combined_score
from ..ranking.sources import assemble_sources
from ..retrievers.dense import DenseRetriever
from ..retrievers.sparse import SparseRetriever
from ..web.provider import SerpstackProvider, WebSearchProvider
from ..web.search_client import WebSearchClient

logger = structlog.get_logger("search_service.search_manager")

# Fallback fusion weights for method records without an explicit weight.
FUSION_DENSE_WEIGHT = 0.6
FUSION_SPARSE_WEIGHT = 0.4


class HybridSearchManager:
    """Coordinates the retrieval strategies for one query at a time.

    Responsibilities
    - Merge per-request overrides onto the process-wide defaults
    - Dispatch the enabled strategies concurrently and settle all of them
    - Fuse, truncate, score and assemble sources

    Parameters
    - dense: ``DenseRetriever`` over the vector store
    - sparse: ``SparseRetriever`` over the document corpus
    - web: ``WebSearchClient`` for live web results
    - defaults: Base ``SearchConfig`` that request overrides are layered onto
    - strategy_timeout: Optional per-branch deadline in seconds
    - metrics: Optional collector for search timings and degraded strategies
    """

    def __init__(
        self,
        dense: DenseRetriever,
        sparse: SparseRetriever,
        web: WebSearchClient,
        defaults: SearchConfig = DEFAULT_SEARCH_CONFIG,
        strategy_timeout: Optional[float] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.dense = dense
        self.sparse = sparse
        self.web = web
        self.defaults = defaults
        self.strategy_timeout = strategy_timeout
        self.metrics = metrics

    @classmethod
    def from_config(
        cls,
        config: SearchServiceConfig,
        store: Optional[DocumentStore] = None,
        embedder: Optional[EmbeddingProvider] = None,
        provider: Optional[WebSearchProvider] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> "HybridSearchManager":
        """Wire a manager and its collaborators from service settings.

        Explicit collaborators take precedence over the ones built from
        ``config``; the same store serves both dense and sparse retrieval.
        """
        store = store or create_document_store_from_env(config.vector_store_env())
        embedder = embedder or SentenceTransformerEmbeddingProvider(
            model_name=config.ml_embedding_model,
            device=config.ml_embedding_device,
            metrics=metrics,
        )
        provider = provider or SerpstackProvider(
            api_key=config.ml_web_search_api_key,
            base_url=config.ml_web_search_base_url,
            timeout=config.ml_web_search_timeout,
            country=config.ml_web_search_country,
            language=config.ml_web_search_language,
        )

        return cls(
            dense=DenseRetriever(store, embedder, metrics=metrics),
            sparse=SparseRetriever(store, metrics=metrics),
            web=WebSearchClient(provider, news_count=config.ml_web_search_news_count, metrics=metrics),
            strategy_timeout=config.ml_search_strategy_timeout,
            metrics=metrics,
        )

    async def search(
        self,
        query: str,
        config: Union[SearchConfig, Mapping[str, Any], None] = None,
        query_type: str = "hybrid"
    ) -> HybridSearchResult:
        """Run a hybrid search.

        Parameters
        - query: Free-text query
        - config: Partial overrides (mapping) or a complete ``SearchConfig``
        - query_type: Label used for metrics (``hybrid``, ``documents``, ``web``)

        Returns
        - A ``HybridSearchResult``; empty when the orchestration itself fails
        """
        start_time = time.time()
        try:
            return await self._search(query, config, start_time, query_type)
        except Exception as e:
            elapsed_ms = self._elapsed_ms(start_time)
            logger.error(
                "Hybrid search failed, returning empty result",
                error=str(e),
                error_type=type(e).__name__,
                search_time_ms=elapsed_ms
            )
            if self.metrics:
                self.metrics.record_strategy_failure("orchestrator")
                self.metrics.record_search(query_type, time.time() - start_time)
            return HybridSearchResult.empty(search_time_ms=elapsed_ms)

    async def _search(
        self,
        query: str,
        overrides: Union[SearchConfig, Mapping[str, Any], None],
        start_time: float,
        query_type: str
    ) -> HybridSearchResult:
        config = merge_search_config(overrides, self.defaults)

        dense_enabled = config.is_enabled(RetrievalMethodKind.DENSE)
        sparse_enabled = config.is_enabled(RetrievalMethodKind.SPARSE)
        web_enabled = config.is_enabled(RetrievalMethodKind.WEB_ONLY) and config.include_web

        branches: Dict[str, Awaitable[Any]] = {}
        if dense_enabled:
            branches["dense"] = self.dense.retrieve(
                query,
                max_results=config.max_documents,
                threshold=config.similarity_threshold
            )
        if sparse_enabled:
            branches["sparse"] = self.sparse.retrieve(query, max_results=config.max_documents)
        if web_enabled:
            branches["web"] = self._web_branch(query, config)

        settled = await self._settle(branches)

        dense_results: List[SearchResult] = settled.get("dense", [])
        sparse_results: List[SearchResult] = settled.get("sparse", [])
        web_results: List[WebSearchResult] = settled.get("web", [])

        try:
            if dense_enabled and sparse_enabled:
                document_results = combine_results(
                    dense_results,
                    sparse_results,
                    dense_weight=config.method_weight(RetrievalMethodKind.DENSE, FUSION_DENSE_WEIGHT),
                    sparse_weight=config.method_weight(RetrievalMethodKind.SPARSE, FUSION_SPARSE_WEIGHT)
                )
            elif dense_enabled:
                document_results = list(dense_results)
            elif sparse_enabled:
                document_results = list(sparse_results)
            else:
                document_results = []

            document_results = document_results[:config.max_documents]
            web_results = web_results[:config.max_web_results]

            combined_score = compute_combined_score(document_results, web_results)
            sources = assemble_sources(document_results, web_results)
        except Exception as e:
            raise OrchestratorFailure(f"Failed to assemble hybrid result: {e}") from e

        elapsed_ms = self._elapsed_ms(start_time)
        result = HybridSearchResult(
            document_results=document_results,
            web_results=web_results,
            combined_score=combined_score,
            sources=sources,
            search_time_ms=elapsed_ms,
            total_results=len(document_results) + len(web_results),
        )

        log_performance(
            "hybrid_search",
            elapsed_ms,
            query_type=query_type,
            strategies=list(branches),
            document_results=len(document_results),
            web_results=len(web_results)
        )
        if self.metrics:
            self.metrics.record_search(query_type, time.time() - start_time)

        return result

    async def _web_branch(self, query: str, config: SearchConfig) -> List[WebSearchResult]:
        response = await self.web.search_with_fallback(
            query,
            include_news=config.include_news,
            location=config.location,
            max_results=config.max_web_results
        )
        return response.results

    async def _settle(self, branches: Dict[str, Awaitable[Any]]) -> Dict[str, List[Any]]:
        """Await every branch; a failed or timed-out branch yields ``[]``."""
        if not branches:
            return {}

        names = list(branches)
        awaitables = [self._bounded(branches[name]) for name in names]
        outcomes = await asyncio.gather(*awaitables, return_exceptions=True)

        settled: Dict[str, List[Any]] = {}
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.error(
                    "Retrieval strategy failed",
                    strategy=name,
                    error=str(outcome),
                    error_type=type(outcome).__name__
                )
                if self.metrics:
                    self.metrics.record_strategy_failure(name)
                settled[name] = []
            else:
                settled[name] = outcome
        return settled

    async def _bounded(self, awaitable: Awaitable[Any]) -> Any:
        if self.strategy_timeout is None:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=self.strategy_timeout)

    async def search_documents(self, query: str, max_results: int = 5) -> HybridSearchResult:
        """Documents-only search with fixed 0.6 / 0.4 fusion weights."""
        return await self.search(
            query,
            SearchConfig(
                methods=(
                    RetrievalMethod(kind=RetrievalMethodKind.DENSE, enabled=True, weight=0.6),
                    RetrievalMethod(kind=RetrievalMethodKind.SPARSE, enabled=True, weight=0.4),
                ),
                include_web=False,
                include_news=self.defaults.include_news,
                max_documents=max_results,
                max_web_results=0,
                similarity_threshold=self.defaults.similarity_threshold,
                location=self.defaults.location,
            ),
            query_type="documents"
        )

    async def search_web(self, query: str, max_results: int = 8) -> HybridSearchResult:
        """Web-only search including news results."""
        return await self.search(
            query,
            SearchConfig(
                methods=(RetrievalMethod(kind=RetrievalMethodKind.WEB_ONLY, enabled=True, weight=1.0),),
                include_web=True,
                include_news=True,
                max_documents=0,
                max_web_results=max_results,
                similarity_threshold=self.defaults.similarity_threshold,
                location=self.defaults.location,
            ),
            query_type="web"
        )

    async def health_check(self) -> Dict[str, Any]:
        """Report collaborator status without issuing a search."""
        try:
            store_healthy = await self.dense.store.health_check()
        except Exception as e:
            logger.error("Document store health check failed", error=str(e))
            store_healthy = False

        return {
            "document_store": store_healthy,
            "web_search_configured": self.web.provider.is_configured,
            "strategy_timeout": self.strategy_timeout,
        }

    async def cleanup(self) -> None:
        """Release the web client and document store."""
        try:
            await self.web.close()
            await self.dense.store.close()
            logger.info("Search manager cleaned up")
        except Exception as e:
            logger.error("Error during search manager cleanup", error=str(e))

    @staticmethod
    def _elapsed_ms(start_time: float) -> int:
        return int((time.time() - start_time) * 1000)
