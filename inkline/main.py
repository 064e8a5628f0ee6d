"""Inkline analysis service - FastAPI application entry point."""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api.v1.dependencies import get_orchestrator, shutdown_orchestrator
from .api.v1.endpoints.analyze import router as analyze_router
from .api.v1.endpoints.usage import router as usage_router
from .core.config import settings
from .core.logging import configure_logging
from .services.analysis_orchestrator import AnalysisOrchestrator

logger = structlog.get_logger(__name__)

SERVICE_NAME = "inkline"
SERVICE_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    configure_logging()
    logger.info(
        "service_starting",
        port=settings.API_PORT,
        redis=settings.REDIS_URL,
        judgment_model=settings.JUDGMENT_LLM_MODEL,
        vision_model=settings.VISION_LLM_MODEL,
        search_configured=settings.search_available,
    )

    yield

    await shutdown_orchestrator()
    logger.info("service_stopped")


app = FastAPI(
    title="Inkline API",
    description="Two-tier trust analysis for social media posts",
    version=SERVICE_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_origin_regex=settings.CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.get("/api/v1/health", tags=["Health"])
async def health_check(
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """Health check endpoint.

    Returns:
        JSONResponse: Service status, cache connectivity and which optional
        capabilities are configured
    """
    cache_connected = await orchestrator.cache.store.is_available()
    return JSONResponse(
        content={
            "status": "healthy",
            "service": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "cache": "connected" if cache_connected else "unavailable",
            "search_configured": orchestrator.search.is_available,
            "vision_configured": orchestrator.visual.is_available,
            "environment": "development" if settings.DEBUG else "production",
        }
    )


@app.get("/", tags=["Root"])
async def root() -> JSONResponse:
    return JSONResponse(
        content={
            "service": "Inkline API",
            "version": SERVICE_VERSION,
            "docs": "/api/docs",
            "health": "/api/v1/health",
            "status": "ready",
        }
    )


app.include_router(analyze_router, prefix="/api")
app.include_router(usage_router, prefix="/api")
