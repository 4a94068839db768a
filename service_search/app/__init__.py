"""Search service package.

Layout:
- ``api``: HTTP endpoints for hybrid, document, web and diagnostic calls.
- ``hybrid``: concurrent orchestration of the retrieval strategies.
- ``retrievers``: dense and sparse document retrieval.
- ``web``: web search provider and scoring client.
- ``ranking``: score fusion, web result heuristics and source assembly.
- ``encoders``: query embedding provider.
- ``runtime``: service-local metrics helpers.
"""
