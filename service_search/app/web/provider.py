"""Web search provider boundary.

``WebSearchProvider`` is the transport-level contract used by the web search
client: one call per query variant (web or news), returning a validated
``ProviderResponse``. ``SerpstackProvider`` implements it over HTTP with
``httpx``.

Failure kinds are kept distinct:
- ``TransportFailure``: connection errors, timeouts and non-2xx statuses
- ``ProviderError``: an ``error`` object in the payload, a non-JSON body,
  or a payload whose shape does not match ``ProviderResponse``

There is no retry; each call is bounded by the client timeout.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from ..errors import ProviderError, TransportFailure

logger = structlog.get_logger("search_service.web_provider")


class SearchKind(str, Enum):
    """Query variant requested from the provider."""
    WEB = "web"
    NEWS = "news"


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class OrganicResultPayload(_Payload):
    title: str = ""
    url: str
    snippet: Optional[str] = None


class NewsResultPayload(_Payload):
    title: str = ""
    url: str
    snippet: Optional[str] = None
    source_name: Optional[str] = None
    uploaded_utc: Optional[str] = None


class FeaturedSnippetValue(_Payload):
    text: Optional[str] = None


class FeaturedSnippetPayload(_Payload):
    link: str
    link_title: Optional[str] = None
    value: Optional[FeaturedSnippetValue] = None


class AnswerBoxPayload(_Payload):
    featured_snippets: List[FeaturedSnippetPayload] = []

    @field_validator("featured_snippets", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class KnowledgeGraphPayload(_Payload):
    title: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    type: Optional[str] = None


class RelatedSearchPayload(_Payload):
    text: str


class SearchInformationPayload(_Payload):
    total_results: Optional[int] = None


class ProviderErrorPayload(_Payload):
    code: Optional[int] = None
    type: Optional[str] = None
    info: Optional[str] = None


class ProviderResponse(_Payload):
    """Validated provider payload; unknown keys are ignored."""

    organic_results: List[OrganicResultPayload] = []
    news_results: List[NewsResultPayload] = []
    answer_box: Optional[AnswerBoxPayload] = None
    knowledge_graph: Optional[KnowledgeGraphPayload] = None
    related_searches: List[RelatedSearchPayload] = []
    search_information: Optional[SearchInformationPayload] = None
    error: Optional[ProviderErrorPayload] = None

    @field_validator("organic_results", "news_results", "related_searches", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def total_results(self) -> int:
        if self.search_information and self.search_information.total_results:
            return self.search_information.total_results
        return 0


class WebSearchProvider(ABC):
    """External web search provider."""

    @abstractmethod
    async def search(
        self,
        query: str,
        kind: SearchKind = SearchKind.WEB,
        location: Optional[str] = None,
        count: int = 10
    ) -> ProviderResponse:
        """Run one provider query; raises ``TransportFailure`` or ``ProviderError``."""
        pass

    @property
    def is_configured(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class SerpstackProvider(WebSearchProvider):
    """Serpstack-compatible search API over ``httpx``.

    Parameters
    - api_key: Access key; calls fail with ``ProviderError`` when missing
    - base_url: Search endpoint
    - timeout: Per-request timeout in seconds
    - country / language: Localisation parameters (``gl`` / ``hl``)
    - http_client: Optional pre-built ``httpx.AsyncClient`` (not closed by
      this provider)
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.serpstack.com/search",
        timeout: float = 10.0,
        country: str = "us",
        language: str = "en",
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.timeout = timeout
        self.country = country
        self.language = language
        self._http_client = http_client
        self._owns_client = http_client is None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    def _build_params(
        self,
        query: str,
        kind: SearchKind,
        location: Optional[str],
        count: int
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "access_key": self.api_key,
            "query": query,
            "type": kind.value,
            "num": count,
            "gl": self.country,
            "hl": self.language,
            "safe": 0,
        }
        if location:
            params["location"] = location
        return params

    async def search(
        self,
        query: str,
        kind: SearchKind = SearchKind.WEB,
        location: Optional[str] = None,
        count: int = 10
    ) -> ProviderResponse:
        if not self.api_key:
            raise ProviderError("Web search API key is not configured")

        params = self._build_params(query, kind, location, count)
        client = self._get_client()

        try:
            response = await client.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error("Web search request timed out", kind=kind.value, timeout=self.timeout)
            raise TransportFailure(f"Web search request timed out after {self.timeout}s") from e
        except httpx.HTTPStatusError as e:
            logger.error("Web search request rejected", kind=kind.value, status=e.response.status_code)
            raise TransportFailure(f"Web search returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            logger.error("Web search request failed", kind=kind.value, error=str(e))
            raise TransportFailure(f"Web search request failed: {e}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise ProviderError("Web search provider returned a non-JSON body") from e

        if not isinstance(payload, dict):
            raise ProviderError(f"Unexpected web search payload type: {type(payload).__name__}")

        try:
            parsed = ProviderResponse.model_validate(payload)
        except ValidationError as e:
            logger.error("Web search payload failed validation", kind=kind.value, errors=e.error_count())
            raise ProviderError(f"Unexpected web search payload: {e}") from e

        if parsed.error is not None:
            info = parsed.error.info or parsed.error.type or "unknown error"
            logger.error("Web search provider reported an error", kind=kind.value, code=parsed.error.code, info=info)
            raise ProviderError(f"Web search provider error: {info}", code=parsed.error.code, info=info)

        return parsed

    async def close(self) -> None:
        if self._http_client is not None and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None
