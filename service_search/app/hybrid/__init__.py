"""Hybrid retrieval orchestration."""
