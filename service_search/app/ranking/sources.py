"""Source assembly: turn result records into citation-numbered sources.

Document sources are numbered first, starting at 1; web sources continue
from where the documents stopped, so citation labels form one contiguous
sequence per response.
"""

from typing import List, Sequence

from ..models import SearchResult, Source, SourceKind, WebResultKind, WebSearchResult

LOCAL_DOCUMENTS_DOMAIN = "local-documents"
LOCAL_DOCUMENT_CREDIBILITY = 0.8
SNIPPET_LENGTH = 300
SNIPPET_ELLIPSIS = "..."

_WEB_SOURCE_KINDS = {
    WebResultKind.ORGANIC: SourceKind.WEB,
    WebResultKind.NEWS: SourceKind.NEWS,
    WebResultKind.KNOWLEDGE_GRAPH: SourceKind.KNOWLEDGE_GRAPH,
    WebResultKind.ANSWER_BOX: SourceKind.ANSWER_BOX,
}


def document_anchor(document_id: str) -> str:
    """Synthetic URL pointing at a locally stored document."""
    return f"#document-{document_id}"


def documents_to_sources(results: Sequence[SearchResult]) -> List[Source]:
    """Project fused document results onto sources numbered from 1."""
    sources = []
    for position, result in enumerate(results, start=1):
        document = result.document
        sources.append(Source(
            id=document.id,
            title=document.title,
            url=document_anchor(document.id),
            snippet=document.content[:SNIPPET_LENGTH] + SNIPPET_ELLIPSIS,
            domain=LOCAL_DOCUMENTS_DOMAIN,
            kind=SourceKind.DOCUMENT,
            credibility_score=LOCAL_DOCUMENT_CREDIBILITY,
            relevance_score=result.score,
            citation=f"[{position}] {document.title}",
        ))
    return sources


def web_results_to_sources(results: Sequence[WebSearchResult], start_index: int = 0) -> List[Source]:
    """Project web results onto sources numbered from ``start_index + 1``."""
    sources = []
    for position, result in enumerate(results, start=start_index + 1):
        sources.append(Source(
            id=result.id,
            title=result.title,
            url=result.url,
            snippet=result.snippet,
            domain=result.domain,
            kind=_WEB_SOURCE_KINDS[result.kind],
            credibility_score=result.credibility_score,
            relevance_score=result.relevance_score,
            publish_date=result.publish_date,
            citation=f"[{position}] {result.title} - {result.domain}",
        ))
    return sources


def assemble_sources(
    document_results: Sequence[SearchResult],
    web_results: Sequence[WebSearchResult]
) -> List[Source]:
    """Documents first, then web results, with one running citation index."""
    document_sources = documents_to_sources(document_results)
    web_sources = web_results_to_sources(web_results, start_index=len(document_sources))
    return document_sources + web_sources
