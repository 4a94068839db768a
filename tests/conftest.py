"""Shared fixtures for search service tests."""

import pytest
from prometheus_client import CollectorRegistry

from libs.common.metrics import MetricsCollector
from libs.vector_store.memory import InMemoryDocumentStore
from tests.fakes import make_document


@pytest.fixture
def metrics():
    """Collector on a private registry so counts start at zero."""
    return MetricsCollector("test-search", registry=CollectorRegistry())


@pytest.fixture
def corpus():
    """Small corpus with 3-dimensional embeddings."""
    return [
        make_document("1", "Solar energy", "Photovoltaic panels convert sunlight.", [1.0, 0.0, 0.0], age_days=3),
        make_document("2", "Wind power", "Turbines harvest kinetic energy.", [0.8, 0.6, 0.0], age_days=2),
        make_document("3", "Ocean tides", "Tidal generators follow the moon.", [0.0, 0.0, 1.0], age_days=1),
    ]


@pytest.fixture
def memory_store(corpus):
    return InMemoryDocumentStore(corpus)
