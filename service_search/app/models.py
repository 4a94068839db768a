"""Data model for hybrid retrieval.

Request-scoped configuration (``RetrievalMethod``, ``SearchConfig``), the
per-strategy result records (``SearchResult``, ``WebSearchResult``) and the
unified output (``Source``, ``HybridSearchResult``).

``SearchConfig`` is frozen: per-request overrides are layered onto the
process-wide defaults with ``merge_search_config``, which always returns a
new object.
"""

from enum import Enum
from typing import Any, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from libs.vector_store.base import DocumentRecord


class RetrievalMethodKind(str, Enum):
    """Retrieval strategies a request can toggle."""
    DENSE = "dense"
    SPARSE = "sparse"
    WEB_ONLY = "web_only"
    HYBRID = "hybrid"
    DOCUMENTS_ONLY = "documents_only"


class SearchResultKind(str, Enum):
    """Origin of a document search result."""
    DENSE = "dense"
    SPARSE = "sparse"
    HYBRID = "hybrid"


class WebResultKind(str, Enum):
    """Result category reported by the web search provider."""
    ORGANIC = "organic"
    NEWS = "news"
    KNOWLEDGE_GRAPH = "knowledge_graph"
    ANSWER_BOX = "answer_box"


class SourceKind(str, Enum):
    """Kind of a citation-ready source."""
    DOCUMENT = "document"
    WEB = "web"
    NEWS = "news"
    KNOWLEDGE_GRAPH = "knowledge_graph"
    ANSWER_BOX = "answer_box"


class RetrievalMethod(BaseModel):
    """A retrieval strategy toggle with its fusion weight.

    ``weight`` may be left unset; fusion then falls back to its own
    per-strategy default.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    kind: RetrievalMethodKind = Field(..., alias="type")
    enabled: bool = True
    weight: Optional[float] = None


class SearchConfig(BaseModel):
    """Per-request search configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    methods: Tuple[RetrievalMethod, ...] = ()
    include_web: bool = True
    include_news: bool = True
    max_documents: int = Field(default=5, ge=0)
    max_web_results: int = Field(default=5, ge=0)
    similarity_threshold: float = 0.6
    location: Optional[str] = None

    def method(self, kind: RetrievalMethodKind) -> Optional[RetrievalMethod]:
        """First method record of ``kind``, if any."""
        for method in self.methods:
            if method.kind == kind:
                return method
        return None

    def is_enabled(self, kind: RetrievalMethodKind) -> bool:
        method = self.method(kind)
        return bool(method and method.enabled)

    def method_weight(self, kind: RetrievalMethodKind, default: float) -> float:
        method = self.method(kind)
        if method is None or method.weight is None:
            return default
        return method.weight


DEFAULT_SEARCH_CONFIG = SearchConfig(
    methods=(
        RetrievalMethod(kind=RetrievalMethodKind.DENSE, enabled=True, weight=0.4),
        RetrievalMethod(kind=RetrievalMethodKind.SPARSE, enabled=True, weight=0.3),
        RetrievalMethod(kind=RetrievalMethodKind.WEB_ONLY, enabled=True, weight=0.3),
    ),
    include_web=True,
    include_news=True,
    max_documents=5,
    max_web_results=5,
    similarity_threshold=0.6,
)


def merge_search_config(
    overrides: Union[SearchConfig, Mapping[str, Any], None] = None,
    defaults: SearchConfig = DEFAULT_SEARCH_CONFIG,
) -> SearchConfig:
    """Overlay caller-supplied values onto ``defaults``.

    Keys present in ``overrides`` replace the default value wholesale (a
    ``methods`` override replaces the whole method list). Raises
    ``pydantic.ValidationError`` on unknown keys or invalid values.
    """
    if overrides is None:
        return defaults
    if isinstance(overrides, SearchConfig):
        return overrides

    merged = defaults.model_dump()
    merged.update(dict(overrides))
    return SearchConfig.model_validate(merged)


class SearchResult(BaseModel):
    """A document matched by dense, sparse or fused retrieval."""

    document: DocumentRecord
    similarity: float
    score: float
    kind: SearchResultKind


class WebSearchResult(BaseModel):
    """A scored result returned by the web search client."""

    id: str
    title: str
    url: str
    snippet: str = ""
    domain: str
    kind: WebResultKind
    credibility_score: float
    relevance_score: float
    publish_date: Optional[str] = None
    source_name: Optional[str] = None


class KnowledgeGraph(BaseModel):
    """Structured entity summary returned alongside web results."""

    title: Optional[str] = None
    description: Optional[str] = None
    website: Optional[str] = None
    type: Optional[str] = None


class WebSearchResponse(BaseModel):
    """Output of ``WebSearchClient.search``."""

    results: List[WebSearchResult] = Field(default_factory=list)
    total_results: int = 0
    search_time_ms: int = 0
    related_queries: List[str] = Field(default_factory=list)
    knowledge_graph: Optional[KnowledgeGraph] = None

    @classmethod
    def empty(cls) -> "WebSearchResponse":
        return cls(results=[], total_results=0, search_time_ms=0, related_queries=[])


class Source(BaseModel):
    """Citation-ready projection of a document or web result."""

    id: str
    title: str
    url: str
    snippet: str
    domain: str
    kind: SourceKind
    credibility_score: float
    relevance_score: float
    publish_date: Optional[str] = None
    citation: str


class HybridSearchResult(BaseModel):
    """Terminal output of a hybrid search."""

    document_results: List[SearchResult] = Field(default_factory=list)
    web_results: List[WebSearchResult] = Field(default_factory=list)
    combined_score: float = 0.0
    sources: List[Source] = Field(default_factory=list)
    search_time_ms: int = 0
    total_results: int = 0

    @classmethod
    def empty(cls, search_time_ms: int = 0) -> "HybridSearchResult":
        return cls(search_time_ms=search_time_ms)
