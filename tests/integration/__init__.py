"""Integration tests against live collaborators.

Each test skips when its dependency (PostgreSQL with pgvector) is not
reachable.
"""
