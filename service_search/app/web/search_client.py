"""Web search client: provider calls, scoring and result merging.

One provider call is made for the web variant of a query and, when news is
requested, a second one for the news variant. Organic, news and answer-box
results are mapped into ``WebSearchResult`` records, scored for credibility
and relevance, and ranked together.

``search`` raises on a failed primary call. ``search_with_fallback`` never
raises; on failure it returns the canonical empty response, and callers
should rely on that contract only.
"""

import time
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import structlog

from libs.common.metrics import MetricsCollector
from ..models import KnowledgeGraph, WebResultKind, WebSearchResponse, WebSearchResult
from ..ranking.scoring import credibility_score, rank_web_results, relevance_score
from .provider import ProviderResponse, SearchKind, WebSearchProvider

logger = structlog.get_logger("search_service.web_search")

DEFAULT_MAX_RESULTS = 8
RELATED_QUERIES_LIMIT = 5
FEATURED_ANSWER_TITLE = "Featured Answer"


def extract_domain(url: str) -> str:
    """Hostname of ``url``; empty when it has none."""
    try:
        return urlparse(url).hostname or ""
    except ValueError:
        return ""


class WebSearchClient:
    """Scores and merges web search provider results.

    Parameters
    - provider: The ``WebSearchProvider`` to query
    - news_count: Results requested from the secondary news call
    - metrics: Optional collector for strategy failures
    """

    def __init__(
        self,
        provider: WebSearchProvider,
        news_count: int = 3,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.provider = provider
        self.news_count = news_count
        self.metrics = metrics

    def process_results(self, payload: ProviderResponse, query: str) -> List[WebSearchResult]:
        """Map every result category of one provider response, ranked."""
        results: List[WebSearchResult] = []

        for index, organic in enumerate(payload.organic_results):
            domain = extract_domain(organic.url)
            if not domain:
                logger.warning("Skipping web result without a hostname", url=organic.url)
                continue
            snippet = organic.snippet or ""
            results.append(WebSearchResult(
                id=f"organic_{index}",
                title=organic.title,
                url=organic.url,
                snippet=snippet,
                domain=domain,
                kind=WebResultKind.ORGANIC,
                credibility_score=credibility_score(domain),
                relevance_score=relevance_score(query, organic.title, snippet),
            ))

        for index, news in enumerate(payload.news_results):
            domain = extract_domain(news.url)
            if not domain:
                logger.warning("Skipping news result without a hostname", url=news.url)
                continue
            snippet = news.snippet or ""
            results.append(WebSearchResult(
                id=f"news_{index}",
                title=news.title,
                url=news.url,
                snippet=snippet,
                domain=domain,
                kind=WebResultKind.NEWS,
                credibility_score=credibility_score(domain),
                relevance_score=relevance_score(query, news.title, snippet),
                publish_date=news.uploaded_utc,
                source_name=news.source_name,
            ))

        if payload.answer_box is not None:
            for index, featured in enumerate(payload.answer_box.featured_snippets):
                domain = extract_domain(featured.link)
                if not domain:
                    logger.warning("Skipping featured answer without a hostname", url=featured.link)
                    continue
                results.append(WebSearchResult(
                    id=f"answer_{index}",
                    title=featured.link_title or FEATURED_ANSWER_TITLE,
                    url=featured.link,
                    snippet=(featured.value.text if featured.value else None) or "",
                    domain=domain,
                    kind=WebResultKind.ANSWER_BOX,
                    credibility_score=credibility_score(domain, has_knowledge_graph=True),
                    # Featured answers are the provider's own best match.
                    relevance_score=1.0,
                ))

        return rank_web_results(results)

    async def search(
        self,
        query: str,
        include_news: bool = False,
        location: Optional[str] = None,
        max_results: int = DEFAULT_MAX_RESULTS
    ) -> WebSearchResponse:
        """Search the web, optionally adding news results.

        A failed news call is logged and skipped; a failed web call raises.
        """
        start_time = time.time()
        request_count = max_results if max_results > 0 else DEFAULT_MAX_RESULTS

        web_payload = await self.provider.search(
            query,
            kind=SearchKind.WEB,
            location=location,
            count=request_count
        )
        results = self.process_results(web_payload, query)

        if include_news:
            try:
                news_payload = await self.provider.search(
                    query,
                    kind=SearchKind.NEWS,
                    location=location,
                    count=self.news_count
                )
                results = results + self.process_results(news_payload, query)
            except Exception as e:
                logger.warning("Failed to fetch news results", error=str(e), error_type=type(e).__name__)

        results = rank_web_results(results)

        knowledge_graph = None
        if web_payload.knowledge_graph is not None:
            knowledge_graph = KnowledgeGraph(**web_payload.knowledge_graph.model_dump())

        related_queries = [related.text for related in web_payload.related_searches]

        response = WebSearchResponse(
            results=results[:max(max_results, 0)],
            total_results=web_payload.total_results,
            search_time_ms=int((time.time() - start_time) * 1000),
            related_queries=related_queries[:RELATED_QUERIES_LIMIT],
            knowledge_graph=knowledge_graph,
        )

        logger.info(
            "Web search completed",
            results_count=len(response.results),
            total_results=response.total_results,
            include_news=include_news,
            search_time_ms=response.search_time_ms
        )
        return response

    async def search_with_fallback(
        self,
        query: str,
        include_news: bool = False,
        location: Optional[str] = None,
        max_results: int = DEFAULT_MAX_RESULTS
    ) -> WebSearchResponse:
        """Like ``search`` but returns an empty response instead of raising."""
        try:
            return await self.search(
                query,
                include_news=include_news,
                location=location,
                max_results=max_results
            )
        except Exception as e:
            logger.error(
                "Web search failed, returning empty results",
                error=str(e),
                error_type=type(e).__name__
            )
            if self.metrics:
                self.metrics.record_strategy_failure("web")
            return WebSearchResponse.empty()

    async def probe(self) -> Dict[str, Any]:
        """Issue a one-result query to check provider connectivity."""
        if not self.provider.is_configured:
            return {"success": False, "error": "Web search API key is not configured", "results_count": 0}

        try:
            payload = await self.provider.search("test", kind=SearchKind.WEB, count=1)
        except Exception as e:
            return {"success": False, "error": str(e), "results_count": 0}

        return {"success": True, "error": None, "results_count": len(payload.organic_results)}

    async def close(self) -> None:
        await self.provider.close()
