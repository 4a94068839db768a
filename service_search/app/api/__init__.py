"""API subpackage for the search service.

Routers expose hybrid, documents-only and web-only search plus a
diagnostics probe. The transport layer stays thin and delegates to
``HybridSearchManager``.
"""
