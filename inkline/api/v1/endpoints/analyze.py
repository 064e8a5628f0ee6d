"""Quick and deep analysis endpoints.

Quota exhaustion is reported as 429 with ``error="quota_exceeded"`` so the
client can tell it apart from an analysis failure (500,
``error="analysis_failed"``). Judgment failures never reach this layer: the
orchestrator turns them into fallback verdicts.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from ....services.analysis_orchestrator import AnalysisOrchestrator
from ....services.quota.quota_guard import QuotaExceededError
from ..dependencies import get_caller_scope, get_orchestrator
from ..schemas import (
    DeepAnalyzeRequest,
    DeepAnalyzeResponse,
    ErrorResponse,
    QuickAnalyzeRequest,
    QuickAnalyzeResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/v1/analyze", tags=["analyze"])


def quota_exceeded_response(error: QuotaExceededError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "error": "quota_exceeded",
            "message": f"Daily limit of {error.limit} analyses reached. Resets tomorrow.",
            "remaining": 0,
        },
    )


def analysis_failed_response(error: Exception) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "analysis_failed", "message": str(error) or error.__class__.__name__},
    )


@router.post(
    "/quick",
    response_model=QuickAnalyzeResponse,
    status_code=status.HTTP_200_OK,
    summary="Quick trust signal",
    description="Traffic-light verdict from the post text alone. Counts against the daily quota on cache miss.",
    responses={
        200: {"description": "Verdict returned"},
        422: {"description": "Validation error"},
        429: {"model": ErrorResponse, "description": "Daily quota exceeded"},
        500: {"model": ErrorResponse, "description": "Analysis failed"},
    },
)
async def analyze_quick(
    request: QuickAnalyzeRequest,
    scope: str = Depends(get_caller_scope),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> QuickAnalyzeResponse | JSONResponse:
    """Run the quick tier for one post.

    Args:
        request: Post id, text and author
        scope: Caller quota scope
        orchestrator: Analysis orchestrator

    Returns:
        QuickAnalyzeResponse, or an error body on quota exhaustion/failure
    """
    try:
        outcome = await orchestrator.quick(request.text, request.author, scope=scope)
    except QuotaExceededError as e:
        logger.info("quota_exceeded", scope=e.scope, limit=e.limit, content_id=request.id)
        return quota_exceeded_response(e)
    except Exception as e:
        logger.error("quick_analysis_failed", content_id=request.id, error=str(e), exc_info=True)
        return analysis_failed_response(e)

    return QuickAnalyzeResponse(id=request.id, result=outcome.verdict, cached=outcome.cached)


@router.post(
    "/deep",
    response_model=DeepAnalyzeResponse,
    status_code=status.HTTP_200_OK,
    summary="Deep multi-source analysis",
    description="Five-dimension verdict using visual description, web corroboration and comments.",
    responses={
        200: {"description": "Verdict returned"},
        422: {"description": "Validation error"},
        500: {"model": ErrorResponse, "description": "Analysis failed"},
    },
)
async def analyze_deep(
    request: DeepAnalyzeRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> DeepAnalyzeResponse | JSONResponse:
    """Run the deep tier for one post."""
    try:
        outcome = await orchestrator.deep(
            request.text,
            request.author,
            media=request.media,
            comments=request.comments,
        )
    except Exception as e:
        logger.error("deep_analysis_failed", content_id=request.id, error=str(e), exc_info=True)
        return analysis_failed_response(e)

    return DeepAnalyzeResponse(id=request.id, analysis=outcome.verdict, cached=outcome.cached)
