"""Tests for the web search provider and client."""

import httpx
import pytest

from service_search.app.errors import ProviderError, TransportFailure
from service_search.app.models import WebResultKind, WebSearchResponse
from service_search.app.web.provider import SearchKind, SerpstackProvider
from service_search.app.web.search_client import WebSearchClient, extract_domain
from tests.fakes import AlwaysFailingWebProvider, StubWebProvider

WEB_PAYLOAD = {
    "request": {"success": True},
    "search_information": {"total_results": 1250000},
    "organic_results": [
        {"title": "Gardening tips", "url": "https://blog.example.com/garden", "snippet": "Grow tomatoes"},
        {"title": "Climate change overview", "url": "https://www.nature.com/climate", "snippet": "Climate science"},
        {"title": "Broken link", "url": "not a url"},
    ],
    "answer_box": {
        "featured_snippets": [
            {"link": "https://en.wikipedia.org/wiki/Climate", "value": {"text": "Climate is..."}},
        ]
    },
    "knowledge_graph": {"title": "Climate change", "description": "Long-term shifts", "type": "Topic"},
    "related_searches": [{"text": f"related {i}"} for i in range(7)],
}

NEWS_PAYLOAD = {
    "news_results": [
        {
            "title": "Climate change summit opens",
            "url": "https://www.reuters.com/world/summit",
            "snippet": "Leaders meet",
            "source_name": "Reuters",
            "uploaded_utc": "2024-05-01T10:00:00Z",
        }
    ]
}


def mock_provider(handler, **kwargs) -> SerpstackProvider:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return SerpstackProvider(api_key="test-key", http_client=client, **kwargs)


class TestSerpstackProvider:
    """Transport, payload validation and error mapping."""

    @pytest.mark.asyncio
    async def test_request_parameters(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(dict(request.url.params))
            return httpx.Response(200, json=WEB_PAYLOAD)

        provider = mock_provider(handler, country="gb", language="de")
        payload = await provider.search("climate", kind=SearchKind.NEWS, location="London", count=3)

        assert seen == {
            "access_key": "test-key",
            "query": "climate",
            "type": "news",
            "num": "3",
            "gl": "gb",
            "hl": "de",
            "safe": "0",
            "location": "London",
        }
        assert payload.total_results == 1250000
        assert len(payload.organic_results) == 3

    @pytest.mark.asyncio
    async def test_location_omitted_when_absent(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen.update(dict(request.url.params))
            return httpx.Response(200, json={})

        await mock_provider(handler).search("climate")
        assert "location" not in seen
        assert seen["type"] == "web"

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        provider = SerpstackProvider(api_key=None)
        assert not provider.is_configured
        with pytest.raises(ProviderError):
            await provider.search("climate")

    @pytest.mark.asyncio
    async def test_provider_error_payload(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={
                "success": False,
                "error": {"code": 101, "type": "invalid_access_key", "info": "You have not supplied a valid API Access Key."},
            })

        with pytest.raises(ProviderError) as exc_info:
            await mock_provider(handler).search("climate")

        assert exc_info.value.code == 101
        assert "valid API Access Key" in exc_info.value.info

    @pytest.mark.asyncio
    async def test_unexpected_shape_is_provider_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"organic_results": [{"title": "No url"}]})

        with pytest.raises(ProviderError):
            await mock_provider(handler).search("climate")

    @pytest.mark.asyncio
    async def test_non_json_body_is_provider_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>maintenance</html>")

        with pytest.raises(ProviderError):
            await mock_provider(handler).search("climate")

    @pytest.mark.asyncio
    async def test_http_status_is_transport_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={})

        with pytest.raises(TransportFailure):
            await mock_provider(handler).search("climate")

    @pytest.mark.asyncio
    async def test_connection_error_is_transport_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(TransportFailure):
            await mock_provider(handler).search("climate")

    @pytest.mark.asyncio
    async def test_timeout_is_transport_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(TransportFailure):
            await mock_provider(handler).search("climate")

    @pytest.mark.asyncio
    async def test_injected_client_not_closed(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200, json={})))
        provider = SerpstackProvider(api_key="k", http_client=client)

        await provider.close()
        assert not client.is_closed
        await client.aclose()


def test_extract_domain():
    assert extract_domain("https://www.nature.com/articles/1") == "www.nature.com"
    assert extract_domain("not a url") == ""


class TestWebSearchClient:
    @pytest.mark.asyncio
    async def test_process_results_maps_categories(self):
        client = WebSearchClient(StubWebProvider())
        payload = StubWebProvider(web=WEB_PAYLOAD).payloads[SearchKind.WEB]

        results = client.process_results(payload, "climate change")
        by_id = {result.id: result for result in results}

        assert set(by_id) == {"organic_0", "organic_1", "answer_0"}
        answer = by_id["answer_0"]
        assert answer.kind == WebResultKind.ANSWER_BOX
        assert answer.title == "Featured Answer"
        assert answer.relevance_score == 1.0
        assert answer.credibility_score == 0.95
        assert answer.snippet == "Climate is..."

        nature = by_id["organic_1"]
        assert nature.domain == "www.nature.com"
        assert nature.credibility_score == 0.9
        assert nature.relevance_score >= 0.8

        assert by_id["organic_0"].snippet == "Grow tomatoes"
        assert results[0].id == "answer_0"

    @pytest.mark.asyncio
    async def test_search_without_news(self):
        provider = StubWebProvider(web=WEB_PAYLOAD, news=NEWS_PAYLOAD)
        client = WebSearchClient(provider)

        response = await client.search("climate change", max_results=8)

        assert [request["kind"] for request in provider.requests] == [SearchKind.WEB]
        assert provider.requests[0]["count"] == 8
        assert response.total_results == 1250000
        assert response.related_queries == [f"related {i}" for i in range(5)]
        assert response.knowledge_graph.title == "Climate change"
        assert all(result.kind != WebResultKind.NEWS for result in response.results)

    @pytest.mark.asyncio
    async def test_search_with_news_merges_and_ranks(self):
        provider = StubWebProvider(web=WEB_PAYLOAD, news=NEWS_PAYLOAD)
        client = WebSearchClient(provider, news_count=3)

        response = await client.search("climate change", include_news=True, location="Paris")

        news_request = provider.requests[1]
        assert news_request["kind"] == SearchKind.NEWS
        assert news_request["count"] == 3
        assert news_request["location"] == "Paris"

        news = [result for result in response.results if result.kind == WebResultKind.NEWS]
        assert news[0].id == "news_0"
        assert news[0].source_name == "Reuters"
        assert news[0].publish_date == "2024-05-01T10:00:00Z"

        ranks = [0.6 * r.relevance_score + 0.4 * r.credibility_score for r in response.results]
        assert ranks == sorted(ranks, reverse=True)

    @pytest.mark.asyncio
    async def test_news_failure_keeps_web_results(self):
        provider = StubWebProvider(web=WEB_PAYLOAD, news_error=TransportFailure("news down"))

        response = await WebSearchClient(provider).search("climate change", include_news=True)

        assert len(response.results) == 3

    @pytest.mark.asyncio
    async def test_results_truncated(self):
        provider = StubWebProvider(web=WEB_PAYLOAD)
        response = await WebSearchClient(provider).search("climate change", max_results=2)
        assert len(response.results) == 2

    @pytest.mark.asyncio
    async def test_zero_max_results_uses_default_request_count(self):
        provider = StubWebProvider(web=WEB_PAYLOAD)
        response = await WebSearchClient(provider).search("climate change", max_results=0)

        assert provider.requests[0]["count"] == 8
        assert response.results == []

    @pytest.mark.asyncio
    async def test_search_raises_on_primary_failure(self):
        with pytest.raises(TransportFailure):
            await WebSearchClient(AlwaysFailingWebProvider()).search("climate")

    @pytest.mark.asyncio
    async def test_fallback_returns_canonical_empty_response(self, metrics):
        client = WebSearchClient(AlwaysFailingWebProvider(), metrics=metrics)

        response = await client.search_with_fallback("climate", include_news=True)

        assert response == WebSearchResponse.empty()
        assert response.model_dump() == {
            "results": [],
            "total_results": 0,
            "search_time_ms": 0,
            "related_queries": [],
            "knowledge_graph": None,
        }
        assert metrics.registry.get_sample_value(
            "search_strategy_failures_total", {"strategy": "web"}
        ) == 1.0

    @pytest.mark.asyncio
    async def test_fallback_on_provider_error(self):
        provider = StubWebProvider(web_error=ProviderError("quota exceeded", code=104))
        response = await WebSearchClient(provider).search_with_fallback("climate")
        assert response == WebSearchResponse.empty()

    @pytest.mark.asyncio
    async def test_probe(self):
        ok = await WebSearchClient(StubWebProvider(web=WEB_PAYLOAD)).probe()
        assert ok == {"success": True, "error": None, "results_count": 3}

        unconfigured = await WebSearchClient(StubWebProvider(configured=False)).probe()
        assert unconfigured["success"] is False

        failing = await WebSearchClient(AlwaysFailingWebProvider()).probe()
        assert failing == {"success": False, "error": "connection reset", "results_count": 0}
