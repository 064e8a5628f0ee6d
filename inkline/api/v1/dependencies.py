"""FastAPI dependency providers for the analysis endpoints."""

from __future__ import annotations

from fastapi import Request

from ...services.analysis_orchestrator import AnalysisOrchestrator

CLIENT_ID_HEADER = "X-Client-Id"

_orchestrator: AnalysisOrchestrator | None = None


def get_orchestrator() -> AnalysisOrchestrator:
    """Process-wide orchestrator, built lazily from settings."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = AnalysisOrchestrator.from_settings()
    return _orchestrator


async def shutdown_orchestrator() -> None:
    global _orchestrator
    if _orchestrator is not None:
        await _orchestrator.close()
        _orchestrator = None


def get_caller_scope(request: Request) -> str:
    """Quota scope: the X-Client-Id header, else the client host."""
    client_id = request.headers.get(CLIENT_ID_HEADER, "").strip()
    if client_id:
        return client_id[:128]
    if request.client is not None and request.client.host:
        return request.client.host
    return "anonymous"
