"""Tests for the hybrid search service.

Unit tests run against in-memory fakes for the document store, embedding
model and web search provider. Tests that need a live PostgreSQL or search
API are marked ``integration`` and skip when the dependency is unavailable.
"""
