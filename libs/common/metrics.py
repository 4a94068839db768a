"""Metrics collection for the search platform.

Provides a thin convenience wrapper around ``prometheus_client`` so the
service can consistently record HTTP, search, strategy degradation and
embedding metrics.

Design notes
- Metrics and labels are predeclared to avoid cardinality explosions
- A single registry is kept per collector (can be injected for tests)
"""

from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
import structlog

logger = structlog.get_logger("metrics")


class MetricsCollector:
    """Centralized metrics collection for the search service.

    Parameters
    - service_name: Logical name used for scoping
    - registry: Optional custom ``CollectorRegistry`` (e.g. for testing)
    """

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry or CollectorRegistry()

        self.request_count = Counter(
            'http_requests_total',
            'Total HTTP requests',
            ['method', 'endpoint', 'status'],
            registry=self.registry
        )

        self.request_duration = Histogram(
            'http_request_duration_seconds',
            'HTTP request duration',
            ['method', 'endpoint'],
            registry=self.registry
        )

        self.search_requests = Counter(
            'search_requests_total',
            'Total search requests',
            ['query_type'],
            registry=self.registry
        )

        self.search_duration = Histogram(
            'search_duration_seconds',
            'Search duration',
            ['query_type'],
            registry=self.registry
        )

        self.strategy_failures = Counter(
            'search_strategy_failures_total',
            'Retrieval strategies that degraded to an empty result',
            ['strategy'],
            registry=self.registry
        )

        self.embedding_requests = Counter(
            'embedding_requests_total',
            'Total embedding generation requests',
            ['model_name'],
            registry=self.registry
        )

        self.embedding_duration = Histogram(
            'embedding_duration_seconds',
            'Embedding generation duration',
            ['model_name'],
            registry=self.registry
        )

    def record_http_request(
        self,
        method: str,
        endpoint: str,
        status: int,
        duration: float
    ) -> None:
        """Record HTTP request metrics.

        duration is expected in seconds to match Prometheus histogram units.
        """
        self.request_count.labels(method=method, endpoint=endpoint, status=status).inc()
        self.request_duration.labels(method=method, endpoint=endpoint).observe(duration)

    def record_search(self, query_type: str, duration: float) -> None:
        """Record search metrics."""
        self.search_requests.labels(query_type=query_type).inc()
        self.search_duration.labels(query_type=query_type).observe(duration)

    def record_strategy_failure(self, strategy: str) -> None:
        """Record a strategy that degraded to an empty result."""
        self.strategy_failures.labels(strategy=strategy).inc()

    def record_embedding(self, model_name: str, duration: float) -> None:
        """Record embedding generation metrics."""
        self.embedding_requests.labels(model_name=model_name).inc()
        self.embedding_duration.labels(model_name=model_name).observe(duration)

    def get_metrics(self) -> str:
        """Get metrics in Prometheus exposition format for scraping."""
        return generate_latest(self.registry).decode('utf-8')


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector(service_name: str) -> MetricsCollector:
    """Get or create metrics collector for a service.

    Returns a process-wide singleton to avoid duplicate collectors/labels.
    """
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector(service_name)
    return _metrics_collector
