"""Tavily corroboration search client.

Finds real articles on the same topic as a post. Design points:
    - Simple async `search()` returning normalized `SearchResult` models
    - Any failure (missing key, timeout, connection error, non-200,
      malformed JSON, open circuit) returns []
    - Origin-platform and aggregator domains are excluded in the request and
      filtered again client-side
    - Result limiting applied client-side as well as in the request
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from ...core.circuit_breaker import CircuitBreaker, CircuitOpenError
from ...core.config import settings
from ...models.content import SearchResult
from ...utils.query_builder import extract_domain, is_excluded_domain

logger = structlog.get_logger(__name__)

SNIPPET_LENGTH = 200

_search_circuit_breaker: CircuitBreaker | None = None


def get_search_circuit_breaker() -> CircuitBreaker:
    """Get or create the circuit breaker shared by search clients."""
    global _search_circuit_breaker
    if _search_circuit_breaker is None:
        _search_circuit_breaker = CircuitBreaker(
            name="tavily",
            failure_threshold=settings.CIRCUIT_BREAKER_THRESHOLD,
            timeout=float(settings.CIRCUIT_BREAKER_TIMEOUT),
        )
    return _search_circuit_breaker


class TavilySearchError(Exception):
    """Non-200 response from Tavily (recorded as a breaker failure)."""

    pass


class TavilySearchClient:
    """Async client for the Tavily search endpoint.

    Args:
        api_key: Tavily API key (defaults to settings.TAVILY_API_KEY)
        base_url: Tavily base URL
        timeout: Per-request timeout in seconds
        excluded_domains: Domains never returned as corroboration
        http_client: Optional pre-built httpx client (tests use MockTransport)

    Example:
        >>> client = TavilySearchClient()
        >>> results = await client.search("fed holds rates steady", max_results=5)
        >>> assert all(r.source != "x.com" for r in results)
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        excluded_domains: list[str] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = (api_key if api_key is not None else settings.TAVILY_API_KEY).strip()
        self.base_url = (base_url or settings.TAVILY_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.SEARCH_TIMEOUT
        self.excluded_domains = (
            excluded_domains if excluded_domains is not None else settings.SEARCH_EXCLUDED_DOMAINS
        )
        self._client = http_client or httpx.AsyncClient(timeout=self.timeout)

    @property
    def is_available(self) -> bool:
        return len(self.api_key) > 5

    async def close(self) -> None:
        """Close underlying HTTP resources."""
        await self._client.aclose()

    async def _post(self, payload: dict[str, Any]) -> httpx.Response:
        response = await self._client.post(
            f"{self.base_url}/search", json=payload, timeout=self.timeout
        )
        if response.status_code != 200:
            raise TavilySearchError(f"Tavily API error {response.status_code}: {response.text[:200]}")
        return response

    def _normalize(self, raw_results: list[Any], max_results: int) -> list[SearchResult]:
        normalized: list[SearchResult] = []
        for item in raw_results:
            if not isinstance(item, dict):
                continue
            url = str(item.get("url") or "")
            domain = extract_domain(url)
            if not url or is_excluded_domain(domain, self.excluded_domains):
                continue
            try:
                score = float(item.get("score") or 0.0)
            except (TypeError, ValueError):
                score = 0.0
            normalized.append(
                SearchResult(
                    title=str(item.get("title") or ""),
                    url=url,
                    source=domain,
                    snippet=str(item.get("content") or "")[:SNIPPET_LENGTH],
                    score=score,
                )
            )
            if len(normalized) >= max_results:
                break
        return normalized

    async def search(self, query: str, max_results: int | None = None) -> list[SearchResult]:
        """Search the web for articles related to ``query``.

        Args:
            query: Derived search query (see utils.query_builder)
            max_results: Result cap (defaults to settings.SEARCH_MAX_RESULTS)

        Returns:
            Up to ``max_results`` results in provider order, [] on failure
        """
        limit = max_results or settings.SEARCH_MAX_RESULTS
        if not self.is_available:
            logger.info("search_skipped_unconfigured")
            return []
        if not query.strip():
            return []

        payload = {
            "api_key": self.api_key,
            "query": query,
            "search_depth": "basic",
            "max_results": limit,
            "include_answer": False,
            "include_raw_content": False,
            "exclude_domains": list(self.excluded_domains),
        }

        breaker = get_search_circuit_breaker()
        try:
            response = await breaker.call(self._post, payload)
        except CircuitOpenError:
            logger.warning("search_circuit_open")
            return []
        except httpx.TimeoutException:
            logger.warning("search_timeout", query=query[:100])
            return []
        except (httpx.HTTPError, TavilySearchError) as e:
            logger.error("search_request_failed", error=str(e))
            return []
        except Exception as e:  # Unexpected
            logger.error("search_unexpected_error", error=str(e))
            return []

        try:
            data = response.json()
        except ValueError as e:
            logger.error("search_json_parse_error", error=str(e))
            return []

        raw_results = data.get("results") if isinstance(data, dict) else None
        if not isinstance(raw_results, list):
            logger.warning("search_results_not_a_list")
            return []

        results = self._normalize(raw_results, limit)
        logger.info("search_complete", result_count=len(results))
        return results


__all__ = ["TavilySearchClient", "get_search_circuit_breaker"]
