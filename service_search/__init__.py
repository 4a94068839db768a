"""Hybrid research search service."""
