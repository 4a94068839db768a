"""Tests for weighted score fusion."""

import pytest

from service_search.app.models import SearchResultKind, WebResultKind, WebSearchResult
from service_search.app.ranking.fusion import combine_results, compute_combined_score
from tests.fakes import make_result


def web_result(relevance: float) -> WebSearchResult:
    return WebSearchResult(
        id="organic_0",
        title="Result",
        url="https://example.com",
        domain="example.com",
        kind=WebResultKind.ORGANIC,
        credibility_score=0.5,
        relevance_score=relevance,
    )


class TestCombineResults:
    """Score addition, ordering and immutability."""

    def test_overlapping_documents_sum_contributions(self):
        dense = [make_result("A", 0.9), make_result("B", 0.7)]
        sparse = [
            make_result("B", 0.8, SearchResultKind.SPARSE),
            make_result("C", 0.6, SearchResultKind.SPARSE),
        ]

        fused = combine_results(dense, sparse, dense_weight=0.6, sparse_weight=0.4)

        assert [result.document.id for result in fused] == ["B", "A", "C"]
        scores = {result.document.id: result.score for result in fused}
        assert scores["A"] == pytest.approx(0.54)
        assert scores["B"] == pytest.approx(0.74)
        assert scores["C"] == pytest.approx(0.24)
        assert all(result.kind == SearchResultKind.HYBRID for result in fused)

    def test_sparse_only_document(self):
        fused = combine_results([], [make_result("X", 0.55, SearchResultKind.SPARSE)], 0.6, 0.4)
        assert fused[0].score == pytest.approx(0.55 * 0.4)

    def test_weights_are_not_normalised(self):
        fused = combine_results(
            [make_result("A", 0.9)],
            [make_result("A", 0.9, SearchResultKind.SPARSE)],
            dense_weight=1.0,
            sparse_weight=1.0
        )
        assert fused[0].score == pytest.approx(1.8)

    def test_document_ids_unique(self):
        dense = [make_result("A", 0.9), make_result("B", 0.5)]
        sparse = [make_result("A", 0.4, SearchResultKind.SPARSE), make_result("B", 0.3, SearchResultKind.SPARSE)]

        fused = combine_results(dense, sparse)
        ids = [result.document.id for result in fused]
        assert len(ids) == len(set(ids)) == 2

    def test_ties_keep_dense_then_sparse_order(self):
        dense = [make_result("A", 0.5), make_result("B", 0.5)]
        sparse = [make_result("C", 0.5, SearchResultKind.SPARSE)]

        fused = combine_results(dense, sparse, dense_weight=0.5, sparse_weight=0.5)
        assert [result.document.id for result in fused] == ["A", "B", "C"]

    def test_inputs_not_modified(self):
        dense = [make_result("A", 0.9)]
        sparse = [make_result("A", 0.8, SearchResultKind.SPARSE)]

        combine_results(dense, sparse)

        assert dense[0].score == 0.9
        assert dense[0].kind == SearchResultKind.DENSE
        assert sparse[0].score == 0.8

    def test_empty_inputs(self):
        assert combine_results([], []) == []


class TestCombinedScore:
    def test_mean_of_means(self):
        documents = [make_result("A", 0.8), make_result("B", 0.4)]
        web = [web_result(1.0)]
        assert compute_combined_score(documents, web) == pytest.approx((0.6 + 1.0) / 2)

    def test_empty_side_counts_as_zero(self):
        assert compute_combined_score([make_result("A", 0.8)], []) == pytest.approx(0.4)
        assert compute_combined_score([], [web_result(0.6)]) == pytest.approx(0.3)
        assert compute_combined_score([], []) == 0.0
