"""Quota usage endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ....services.analysis_orchestrator import AnalysisOrchestrator
from ..dependencies import get_caller_scope, get_orchestrator
from ..schemas import UsageResponse

router = APIRouter(prefix="/v1", tags=["usage"])


@router.get("/usage", response_model=UsageResponse, summary="Remaining quick analyses today")
async def get_usage(
    scope: str = Depends(get_caller_scope),
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator),
) -> UsageResponse:
    usage = await orchestrator.usage(scope)
    return UsageResponse(
        scope=usage.scope,
        limit=usage.limit,
        remaining=usage.remaining,
        date=usage.date,
    )
