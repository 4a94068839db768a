"""Search service main application."""

import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import structlog

from .api.routes import router as api_router
from .hybrid.search_manager import HybridSearchManager
from .runtime.metrics import MetricsCollector, get_metrics_collector
from libs.common.config import SearchServiceConfig
from libs.common.logging import configure_logging

logger = structlog.get_logger("search_service")

SERVICE_NAME = "search-service"


def create_app(
    config: Optional[SearchServiceConfig] = None,
    search_manager: Optional[HybridSearchManager] = None,
    metrics_collector: Optional[MetricsCollector] = None,
) -> FastAPI:
    """Build the FastAPI application.

    Parameters
    - config: Service settings; read from the environment when omitted
    - search_manager: Pre-built manager (tests); built from ``config`` otherwise
    - metrics_collector: Collector to use instead of the process-wide one
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        # Startup
        service_config = config or SearchServiceConfig()
        configure_logging(SERVICE_NAME, service_config.ml_log_level, service_config.ml_log_format)

        logger.info("Starting search service", environment=service_config.ml_env)

        app.state.config = service_config
        app.state.metrics_collector = metrics_collector or get_metrics_collector(SERVICE_NAME)
        app.state.search_manager = search_manager or HybridSearchManager.from_config(
            service_config,
            metrics=app.state.metrics_collector
        )

        logger.info(
            "Search service started successfully",
            vector_backend=service_config.ml_vector_backend,
            web_search_configured=bool(service_config.ml_web_search_api_key)
        )

        yield

        # Shutdown
        logger.info("Shutting down search service")
        await app.state.search_manager.cleanup()
        logger.info("Search service shutdown complete")

    app = FastAPI(
        title="Search Service",
        description="Hybrid dense, sparse and web search service",
        version="0.1.0",
        lifespan=lifespan
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix="/api/v1")

    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        """Add processing time header to responses."""
        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Process-Time"] = str(time.time() - start_time)
        return response

    @app.middleware("http")
    async def metrics_middleware(request: Request, call_next):
        """Collect metrics for HTTP requests."""
        start_time = time.time()

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            logger.error("Unhandled request error", path=request.url.path, error=str(e))
            status_code = 500
            response = JSONResponse(
                status_code=500,
                content={"error": "Internal server error", "detail": str(e)}
            )

        collector = getattr(request.app.state, "metrics_collector", None)
        if collector is not None:
            collector.record_http_request(
                method=request.method,
                endpoint=request.url.path,
                status=status_code,
                duration=time.time() - start_time
            )

        return response

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        manager = getattr(request.app.state, "search_manager", None)
        if manager is None:
            return JSONResponse(
                status_code=503,
                content={"status": "unhealthy", "service": SERVICE_NAME}
            )

        checks = await manager.health_check()
        if checks["document_store"]:
            return {"status": "healthy", "service": SERVICE_NAME, "checks": checks}
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "service": SERVICE_NAME, "checks": checks}
        )

    @app.get("/metrics")
    async def metrics(request: Request):
        """Prometheus metrics endpoint."""
        collector = getattr(request.app.state, "metrics_collector", None)
        if collector is not None:
            return Response(content=collector.get_metrics(), media_type="text/plain")
        return Response(content="# No metrics available\n", media_type="text/plain")

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "service": SERVICE_NAME,
            "version": "0.1.0",
            "status": "running",
            "endpoints": {
                "health": "/health",
                "metrics": "/metrics",
                "search": "/api/v1/search",
                "search_documents": "/api/v1/search/documents",
                "search_web": "/api/v1/search/web",
                "web_search": "/api/v1/web-search",
                "diagnostics": "/api/v1/diagnostics",
            }
        }

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "service_search.app.main:app",
        host="0.0.0.0",
        port=SearchServiceConfig().ml_search_port,
        log_level="info"
    )
