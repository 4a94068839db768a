"""Document store adapters and utilities.

Primary components:
- ``base``: abstract ``DocumentStore`` interface, record types and exceptions.
- ``pgvector``: PostgreSQL/pgvector implementation of the interface.
- ``memory``: numpy-backed in-process implementation.
- ``factory``: helpers to construct a store from typed config or env.

Guidance:
- Prefer constructing via ``factory.create_document_store_from_env`` so the
  search service remains decoupled from specific backends.
"""
