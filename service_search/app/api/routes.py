"""API routes for the search service."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field, ValidationError
import structlog

from libs.common.config import SearchServiceConfig
from ..hybrid.search_manager import HybridSearchManager
from ..models import HybridSearchResult, KnowledgeGraph, WebSearchResult, merge_search_config
from ..web.search_client import DEFAULT_MAX_RESULTS, WebSearchClient

logger = structlog.get_logger("search_service.api")

router = APIRouter()

QUERY_REQUIRED = "Search query is required"


class HybridSearchRequest(BaseModel):
    """Request model for hybrid search."""
    query: Optional[str] = Field(None, description="Search query")
    config: Optional[Dict[str, Any]] = Field(None, description="Partial search configuration overrides")


class DocumentSearchRequest(BaseModel):
    """Request model for documents-only search."""
    query: Optional[str] = Field(None, description="Search query")
    max_results: int = Field(5, ge=0, description="Maximum number of documents")


class WebOnlySearchRequest(BaseModel):
    """Request model for web-only search."""
    query: Optional[str] = Field(None, description="Search query")
    max_results: int = Field(DEFAULT_MAX_RESULTS, ge=0, description="Maximum number of web results")


class WebSearchOptions(BaseModel):
    """Options for the standalone web search endpoint."""
    include_news: bool = Field(True, description="Also query news results")
    location: Optional[str] = Field(None, description="Location hint for the provider")
    max_results: int = Field(DEFAULT_MAX_RESULTS, ge=0, description="Maximum number of results")


class WebSearchRequest(BaseModel):
    """Request model for the standalone web search endpoint."""
    query: Optional[str] = Field(None, description="Search query")
    options: WebSearchOptions = Field(default_factory=WebSearchOptions)


class WebSearchEndpointResponse(BaseModel):
    """Response model for the standalone web search endpoint."""
    success: bool = Field(..., description="Always true; failures yield an empty result set")
    results: List[WebSearchResult] = Field(..., description="Ranked web results")
    total_results: int = Field(..., description="Total results reported by the provider")
    search_time_ms: int = Field(..., description="Web search latency in milliseconds")
    related_queries: List[str] = Field(..., description="Related queries suggested by the provider")
    knowledge_graph: Optional[KnowledgeGraph] = Field(None, description="Knowledge graph summary")


def get_search_manager(request: Request) -> HybridSearchManager:
    """Get search manager from application state."""
    return request.app.state.search_manager


def get_web_client(request: Request) -> WebSearchClient:
    """Get the web search client owned by the search manager."""
    return request.app.state.search_manager.web


def get_service_config(request: Request) -> SearchServiceConfig:
    """Get service settings from application state."""
    return request.app.state.config


def require_query(query: Optional[str]) -> str:
    if not query or not query.strip():
        raise HTTPException(status_code=400, detail=QUERY_REQUIRED)
    return query


@router.post("/search", response_model=HybridSearchResult)
async def hybrid_search(
    request: HybridSearchRequest,
    search_manager: HybridSearchManager = Depends(get_search_manager)
):
    """Perform hybrid search over documents and the web."""
    query = require_query(request.query)

    try:
        config = merge_search_config(request.config, search_manager.defaults)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=f"Invalid search configuration: {e}")

    result = await search_manager.search(query, config)
    logger.info(
        "Hybrid search served",
        results_count=result.total_results,
        search_time_ms=result.search_time_ms
    )
    return result


@router.post("/search/documents", response_model=HybridSearchResult)
async def search_documents(
    request: DocumentSearchRequest,
    search_manager: HybridSearchManager = Depends(get_search_manager)
):
    """Search stored documents only."""
    query = require_query(request.query)
    return await search_manager.search_documents(query, max_results=request.max_results)


@router.post("/search/web", response_model=HybridSearchResult)
async def search_web(
    request: WebOnlySearchRequest,
    search_manager: HybridSearchManager = Depends(get_search_manager)
):
    """Search the web only, with news results."""
    query = require_query(request.query)
    return await search_manager.search_web(query, max_results=request.max_results)


async def _web_search(
    web_client: WebSearchClient,
    query: Optional[str],
    options: WebSearchOptions
) -> WebSearchEndpointResponse:
    query = require_query(query)
    response = await web_client.search_with_fallback(
        query,
        include_news=options.include_news,
        location=options.location,
        max_results=options.max_results
    )
    return WebSearchEndpointResponse(success=True, **response.model_dump())


@router.post("/web-search", response_model=WebSearchEndpointResponse)
async def web_search(
    request: WebSearchRequest,
    web_client: WebSearchClient = Depends(get_web_client)
):
    """Run a standalone web search."""
    return await _web_search(web_client, request.query, request.options)


@router.get("/web-search", response_model=WebSearchEndpointResponse)
async def web_search_get(
    query: Optional[str] = Query(None, description="Search query"),
    include_news: bool = Query(False, description="Also query news results"),
    location: Optional[str] = Query(None, description="Location hint for the provider"),
    max_results: int = Query(DEFAULT_MAX_RESULTS, ge=0, description="Maximum number of results"),
    web_client: WebSearchClient = Depends(get_web_client)
):
    """Run a standalone web search from query parameters."""
    options = WebSearchOptions(include_news=include_news, location=location, max_results=max_results)
    return await _web_search(web_client, query, options)


@router.get("/diagnostics")
async def diagnostics(
    config: SearchServiceConfig = Depends(get_service_config),
    web_client: WebSearchClient = Depends(get_web_client)
):
    """Report configured collaborators and probe the web search provider."""
    probe = await web_client.probe()
    logger.info("Diagnostics probe completed", web_search_success=probe["success"])

    return {
        "environment": {
            "vector_backend": config.ml_vector_backend,
            "embedding_model": config.ml_embedding_model,
            "web_search_api_key_configured": bool(config.ml_web_search_api_key),
        },
        "web_search": probe,
    }
