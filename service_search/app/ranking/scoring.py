"""Credibility and relevance heuristics for web results.

Both scores live in ``[0, 1]``. Credibility depends only on the result's
domain; relevance on how many query terms appear in the title and snippet.
Results are ranked by ``0.6 * relevance + 0.4 * credibility``.
"""

from typing import Iterable, List

from ..models import WebSearchResult

HIGH_CREDIBILITY_DOMAINS = (
    "wikipedia.org",
    "britannica.com",
    "reuters.com",
    "bbc.com",
    "apnews.com",
    "nature.com",
    "science.org",
    "pubmed.ncbi.nlm.nih.gov",
    "arxiv.org",
    "jstor.org",
    "scholar.google.com",
)

MEDIUM_CREDIBILITY_DOMAINS = (
    "cnn.com",
    "nytimes.com",
    "washingtonpost.com",
    "theguardian.com",
    "wsj.com",
    "techcrunch.com",
    "wired.com",
    "scientificamerican.com",
)

# Checked in order; first matching label wins.
SUFFIX_CREDIBILITY = (
    ("edu", 0.85),
    ("gov", 0.8),
    ("org", 0.7),
)

KNOWLEDGE_GRAPH_CREDIBILITY = 0.95
HIGH_CREDIBILITY = 0.9
MEDIUM_CREDIBILITY = 0.75
DEFAULT_CREDIBILITY = 0.5

TITLE_MATCH_BONUS = 0.4
SNIPPET_MATCH_BONUS = 0.2
COVERAGE_WEIGHT = 0.4

RELEVANCE_WEIGHT = 0.6
CREDIBILITY_WEIGHT = 0.4


def credibility_score(domain: str, has_knowledge_graph: bool = False) -> float:
    """Domain reputation score.

    Known reputable hosts match by substring, so subdomains and
    ``www.`` prefixes are covered. Otherwise the public suffix decides:
    ``edu`` and ``gov`` also count when followed by a country code
    (``unsw.edu.au``).
    """
    if has_knowledge_graph:
        return KNOWLEDGE_GRAPH_CREDIBILITY

    domain = domain.lower()
    if any(known in domain for known in HIGH_CREDIBILITY_DOMAINS):
        return HIGH_CREDIBILITY
    if any(known in domain for known in MEDIUM_CREDIBILITY_DOMAINS):
        return MEDIUM_CREDIBILITY

    labels = domain.rstrip(".").split(".")[1:]
    for suffix, score in SUFFIX_CREDIBILITY:
        if suffix in labels:
            return score

    return DEFAULT_CREDIBILITY


def relevance_score(query: str, title: str, snippet: str) -> float:
    """Query-term overlap with a result's title and snippet.

    Each whitespace-separated query term adds ``0.4`` when it occurs in the
    title and ``0.2`` when it occurs in the snippet (substring, case
    insensitive). A coverage bonus of ``matches / (terms * 2) * 0.4`` is
    added on top, and the total is clamped to ``[0, 1]``.
    """
    terms = query.lower().split()
    if not terms:
        return 0.0

    title = (title or "").lower()
    snippet = (snippet or "").lower()

    score = 0.0
    term_matches = 0
    for term in terms:
        if term in title:
            score += TITLE_MATCH_BONUS
            term_matches += 1
        if term in snippet:
            score += SNIPPET_MATCH_BONUS
            term_matches += 1

    coverage = term_matches / (len(terms) * 2)
    score += coverage * COVERAGE_WEIGHT

    return min(max(score, 0.0), 1.0)


def ranking_score(result: WebSearchResult) -> float:
    return RELEVANCE_WEIGHT * result.relevance_score + CREDIBILITY_WEIGHT * result.credibility_score


def rank_web_results(results: Iterable[WebSearchResult]) -> List[WebSearchResult]:
    """Sort by ranking score, best first; ties keep their input order."""
    return sorted(results, key=ranking_score, reverse=True)
