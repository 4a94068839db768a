"""Weighted score fusion for hybrid document retrieval."""

from typing import Dict, List, Sequence

import structlog

from ..models import SearchResult, SearchResultKind, WebSearchResult

logger = structlog.get_logger("search_fusion")


def combine_results(
    dense_results: Sequence[SearchResult],
    sparse_results: Sequence[SearchResult],
    dense_weight: float = 0.6,
    sparse_weight: float = 0.4
) -> List[SearchResult]:
    """Fuse dense and sparse results into one ranked list.

    Each document is keyed by id. A dense hit contributes
    ``similarity * dense_weight``; a sparse hit adds
    ``similarity * sparse_weight`` on top, so documents found by both
    strategies sum their contributions. Weights are used as given and the
    sum is not renormalised, so fused scores may exceed 1.

    Equal scores keep insertion order: dense results first, in their input
    order, then sparse-only results. Inputs are not modified.
    """
    fused: Dict[str, SearchResult] = {}

    for result in dense_results:
        fused[result.document.id] = result.model_copy(update={
            "score": result.similarity * dense_weight,
            "kind": SearchResultKind.HYBRID,
        })

    for result in sparse_results:
        contribution = result.similarity * sparse_weight
        existing = fused.get(result.document.id)
        if existing is not None:
            existing.score = existing.score + contribution
        else:
            fused[result.document.id] = result.model_copy(update={
                "score": contribution,
                "kind": SearchResultKind.HYBRID,
            })

    ranked = sorted(fused.values(), key=lambda result: result.score, reverse=True)

    logger.debug(
        "Weighted score fusion completed",
        dense_count=len(dense_results),
        sparse_count=len(sparse_results),
        fused_count=len(ranked),
        dense_weight=dense_weight,
        sparse_weight=sparse_weight
    )
    return ranked


def compute_combined_score(
    document_results: Sequence[SearchResult],
    web_results: Sequence[WebSearchResult]
) -> float:
    """Unweighted mean of the document and web mean scores.

    Each side's mean is taken over its own list (``0`` when empty), then the
    two means are averaged regardless of list sizes.
    """
    doc_mean = (
        sum(result.score for result in document_results) / len(document_results)
        if document_results else 0.0
    )
    web_mean = (
        sum(result.relevance_score for result in web_results) / len(web_results)
        if web_results else 0.0
    )
    return (doc_mean + web_mean) / 2
