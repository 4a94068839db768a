"""Tests for common utilities."""

import pytest
import structlog
from prometheus_client import CollectorRegistry

from libs.common.config import BaseConfig, EmbeddingConfig, SearchServiceConfig, get_config, load_env_file
from libs.common.logging import configure_logging, get_logger, log_performance
from libs.common.metrics import MetricsCollector


def test_config_loading(monkeypatch):
    """Test configuration defaults."""
    monkeypatch.delenv("ML_LOG_LEVEL", raising=False)
    config = BaseConfig(_env_file=None)
    assert config.ml_env == "local"
    assert config.ml_log_level == "INFO"
    assert config.ml_vector_backend == "pgvector"
    assert config.ml_vector_dimension == 384


def test_embedding_config():
    """Test embedding configuration."""
    config = EmbeddingConfig(_env_file=None)
    assert config.ml_embedding_model == "sentence-transformers/all-MiniLM-L6-v2"
    assert config.ml_embedding_device is None


def test_search_service_config_defaults(monkeypatch):
    """Test search service configuration."""
    monkeypatch.delenv("ML_WEB_SEARCH_API_KEY", raising=False)
    config = SearchServiceConfig(_env_file=None)
    assert config.ml_search_port == 9007
    assert config.ml_web_search_api_key is None
    assert config.ml_web_search_timeout == 10.0
    assert config.ml_web_search_news_count == 3
    assert config.ml_search_strategy_timeout is None


def test_search_service_config_from_env(monkeypatch):
    """Environment variables override defaults, case-insensitively."""
    monkeypatch.setenv("ML_WEB_SEARCH_API_KEY", "secret")
    monkeypatch.setenv("ml_search_strategy_timeout", "2.5")
    monkeypatch.setenv("ML_VECTOR_BACKEND", "memory")

    config = SearchServiceConfig(_env_file=None)
    assert config.ml_web_search_api_key == "secret"
    assert config.ml_search_strategy_timeout == 2.5
    assert config.vector_store_env()["ML_VECTOR_BACKEND"] == "memory"


def test_vector_store_env_is_flat_strings():
    env = SearchServiceConfig(_env_file=None, ml_vector_pool_size=4).vector_store_env()
    assert env["ML_VECTOR_POOL_SIZE"] == "4"
    assert all(isinstance(value, str) for value in env.values())


def test_get_config():
    assert isinstance(get_config("search"), SearchServiceConfig)
    assert isinstance(get_config("embedding"), EmbeddingConfig)
    assert type(get_config("unknown")) is BaseConfig


def test_load_env_file(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("# comment\nML_ENV=staging\n\nML_WEB_SEARCH_API_KEY=abc=def\n")

    env_vars = load_env_file(str(env_file))
    assert env_vars == {"ML_ENV": "staging", "ML_WEB_SEARCH_API_KEY": "abc=def"}
    assert load_env_file(str(tmp_path / "missing.env")) == {}


def test_logging_configuration():
    """Test logging configuration."""
    # This should not raise an exception
    configure_logging("test-service", "INFO", "json")
    assert structlog.contextvars.get_contextvars()["service"] == "test-service"

    configure_logging("test-service", "debug", "console")
    get_logger("test").info("Console logging works")


def test_log_performance():
    configure_logging("test-service", "INFO", "json")
    with structlog.testing.capture_logs() as logs:
        log_performance("hybrid_search", 12, results=3)

    assert logs[0]["operation"] == "hybrid_search"
    assert logs[0]["duration_ms"] == 12
    assert logs[0]["results"] == 3


def test_metrics_collector():
    """Test metrics collector."""
    collector = MetricsCollector("test-service", registry=CollectorRegistry())
    assert collector.service_name == "test-service"

    collector.record_http_request("GET", "/test", 200, 0.1)
    collector.record_search("hybrid", 0.05)
    collector.record_strategy_failure("web")
    collector.record_embedding("test-model", 0.01)

    metrics = collector.get_metrics()
    assert isinstance(metrics, str)
    assert "http_requests_total" in metrics
    assert 'search_strategy_failures_total{strategy="web"} 1.0' in metrics
    assert collector.registry.get_sample_value(
        "search_requests_total", {"query_type": "hybrid"}
    ) == pytest.approx(1.0)
