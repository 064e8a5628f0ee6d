"""HTTP client for the Inkline analysis service.

Every call resolves to an ``AnalysisOutcome`` instead of raising, so the
lifecycle manager can branch on ``error_kind``:

- ``quota_exceeded``: HTTP 429 from the quick tier
- ``analysis_failed``: any other non-200 answer or an unreadable body
- ``transport``: the request never produced an HTTP response
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Literal, TypeVar

import httpx
import structlog
from pydantic import BaseModel, ValidationError

from ..core.config import settings
from ..models.content import MediaDescriptors
from ..models.verdict import DeepVerdict, QuickVerdict

logger = structlog.get_logger(__name__)

ErrorKind = Literal["quota_exceeded", "analysis_failed", "transport"]
T = TypeVar("T")

CLIENT_ID_HEADER = "X-Client-Id"


@dataclass
class AnalysisOutcome(Generic[T]):
    """Result variant: either ``value`` or ``error`` with its kind."""

    value: T | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    cached: bool = False

    @property
    def ok(self) -> bool:
        return self.error_kind is None and self.value is not None

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> AnalysisOutcome[T]:
        return cls(error=message, error_kind=kind)


class UsageSnapshot(BaseModel):
    scope: str
    limit: int
    remaining: int
    date: str


class InklineApiClient:
    """Async wire client for the quick/deep/usage endpoints.

    Example:
        >>> client = InklineApiClient(client_id="browser-42")
        >>> outcome = await client.quick("x:123", "Fed holds rates steady.", "reuters")
        >>> if outcome.ok:
        ...     print(outcome.value.overall)
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        client_id: str | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = (base_url or settings.CLIENT_API_URL).rstrip("/")
        self.timeout = timeout or settings.CLIENT_TIMEOUT
        headers = {CLIENT_ID_HEADER: client_id} if client_id else {}
        self._client = http_client or httpx.AsyncClient(timeout=self.timeout, headers=headers)
        if http_client is not None and client_id:
            self._client.headers[CLIENT_ID_HEADER] = client_id

    async def close(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        return await self._client.request(method, f"{self.base_url}{path}", **kwargs)

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return f"HTTP {response.status_code}"
        if isinstance(body, dict):
            return str(body.get("message") or body.get("error") or f"HTTP {response.status_code}")
        return f"HTTP {response.status_code}"

    def _failure_for(self, response: httpx.Response) -> AnalysisOutcome[Any]:
        message = self._error_message(response)
        if response.status_code == 429:
            return AnalysisOutcome.failure("quota_exceeded", message)
        return AnalysisOutcome.failure("analysis_failed", message)

    async def quick(
        self, content_id: str, text: str, author: str = "unknown"
    ) -> AnalysisOutcome[QuickVerdict]:
        """Request the quick verdict for one post."""
        payload = {"id": content_id, "text": text, "author": author}
        try:
            response = await self._request("POST", "/analyze/quick", json=payload)
        except httpx.HTTPError as e:
            logger.warning("quick_request_transport_error", content_id=content_id, error=str(e))
            return AnalysisOutcome.failure("transport", str(e) or e.__class__.__name__)

        if response.status_code != 200:
            return self._failure_for(response)

        try:
            body = response.json()
            verdict = QuickVerdict.model_validate(body["result"])
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            logger.warning("quick_response_invalid", content_id=content_id, error=str(e))
            return AnalysisOutcome.failure("analysis_failed", "Invalid response from server")
        return AnalysisOutcome(value=verdict, cached=bool(body.get("cached", False)))

    async def deep(
        self,
        content_id: str,
        text: str,
        author: str = "unknown",
        media: MediaDescriptors | None = None,
        comments: list[str] | None = None,
    ) -> AnalysisOutcome[DeepVerdict]:
        """Request the deep verdict for one post."""
        payload = {
            "id": content_id,
            "text": text,
            "author": author,
            "media": (media or MediaDescriptors()).model_dump(),
            "comments": list(comments or []),
        }
        try:
            response = await self._request("POST", "/analyze/deep", json=payload)
        except httpx.HTTPError as e:
            logger.warning("deep_request_transport_error", content_id=content_id, error=str(e))
            return AnalysisOutcome.failure("transport", str(e) or e.__class__.__name__)

        if response.status_code != 200:
            return self._failure_for(response)

        try:
            body = response.json()
            verdict = DeepVerdict.model_validate(body["analysis"])
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            logger.warning("deep_response_invalid", content_id=content_id, error=str(e))
            return AnalysisOutcome.failure("analysis_failed", "Invalid response from server")
        return AnalysisOutcome(value=verdict, cached=bool(body.get("cached", False)))

    async def usage(self) -> UsageSnapshot | None:
        """Today's quota snapshot, or None when the server is unreachable."""
        try:
            response = await self._request("GET", "/usage")
            response.raise_for_status()
            return UsageSnapshot.model_validate(response.json())
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.warning("usage_request_failed", error=str(e))
            return None
