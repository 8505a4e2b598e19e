"""Search provider clients.

``SearchClient`` is the seam the ingestion engine talks to; ``TavilySearchClient``
is the production implementation over HTTP.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel, field_validator

from jobmatch.config.exceptions import ConfigurationError
from jobmatch.logging import get_logger

from .exceptions import InvalidInput, UpstreamUnavailable

logger = get_logger(__name__, component="search")

TAVILY_SEARCH_URL = "https://api.tavily.com/search"
DEFAULT_MAX_RESULTS = 50
# Our depth names -> Tavily's
_TAVILY_DEPTHS = {"basic": "basic", "deep": "advanced"}


class RawResult(BaseModel):
    """One unparsed search hit."""

    title: str = ""
    url: str = ""
    content: str = ""

    @field_validator("title", "url", "content", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)


class SearchClient(ABC):
    """Issues one query and returns at most ``max_results`` raw results.

    Implementations raise ConfigurationError for credential problems and
    UpstreamUnavailable for every other provider failure. An empty list is a
    valid answer, not an error. No retries.
    """

    name: str = "search"

    @abstractmethod
    def search(
        self, query: str, max_results: int = DEFAULT_MAX_RESULTS, depth: str = "basic"
    ) -> List[RawResult]:
        pass


class TavilySearchClient(SearchClient):
    """Tavily web search over ``requests``."""

    name = "tavily"

    def __init__(
        self,
        api_key: Optional[str],
        timeout: int = 30,
        user_agent: str = "JobMatch/0.1",
        endpoint: str = TAVILY_SEARCH_URL,
    ) -> None:
        """
        Args:
            api_key: Tavily API key.
            timeout: Request timeout in seconds.
            user_agent: User-Agent header for requests.
            endpoint: Search endpoint, overridable for tests.

        Raises:
            ConfigurationError: If ``api_key`` is missing.
        """
        if not api_key or not api_key.strip():
            raise ConfigurationError.missing_credentials("TAVILY_API_KEY", "Search provider")
        self._api_key = api_key.strip()
        self.timeout = timeout
        self.endpoint = endpoint
        self._session = requests.Session()
        self._session.headers.update({"User-Agent": user_agent, "Content-Type": "application/json"})

    def search(
        self, query: str, max_results: int = DEFAULT_MAX_RESULTS, depth: str = "basic"
    ) -> List[RawResult]:
        if depth not in _TAVILY_DEPTHS:
            raise InvalidInput(f"depth must be one of {sorted(_TAVILY_DEPTHS)}, got '{depth}'")
        max_results = max(1, min(int(max_results), DEFAULT_MAX_RESULTS))

        payload = {
            "api_key": self._api_key,
            "query": query,
            "search_depth": _TAVILY_DEPTHS[depth],
            "include_answer": False,
            "include_raw_content": False,
            "max_results": max_results,
        }
        data = self._post(payload)

        items = data.get("results") if isinstance(data, dict) else None
        if items is None:
            items = []
        if not isinstance(items, list):
            raise UpstreamUnavailable(
                "Search response 'results' is not a list", url=self.endpoint, provider=self.name
            )

        results: List[RawResult] = []
        for item in items:
            if not isinstance(item, dict) or not item.get("url"):
                logger.debug(
                    "Skipping search hit without a URL",
                    extra={"event": "search.result.skipped"},
                )
                continue
            results.append(RawResult.model_validate(item))

        return self._truncate(results, max_results)

    def _post(self, payload: Dict[str, Any]) -> Any:
        """POST ``payload`` and return decoded JSON, mapping failures to our errors."""
        url = self.endpoint
        try:
            logger.debug(
                f"HTTP POST request to {url}",
                extra={"event": "search.request", "url": url, "timeout": self.timeout},
            )
            response = self._session.post(url, json=payload, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Search request timed out after {self.timeout} seconds",
                extra={"event": "search.request.timeout", "url": url, "timeout": self.timeout},
            )
            raise UpstreamUnavailable(
                f"Search request timed out after {self.timeout} seconds", url=url, provider=self.name
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Search request failed: {e}",
                extra={"event": "search.request.error", "url": url, "error_type": type(e).__name__},
            )
            raise UpstreamUnavailable(
                f"Search request failed: {e}", url=url, provider=self.name
            ) from e

        if response.status_code in (401, 403):
            logger.error(
                f"Search provider rejected credentials (HTTP {response.status_code})",
                extra={"event": "search.request.unauthorized", "status_code": response.status_code},
            )
            raise ConfigurationError.rejected_credentials(
                "TAVILY_API_KEY", "Search provider", response.status_code
            )

        if response.status_code >= 400:
            level = logging.WARNING if response.status_code >= 500 else logging.ERROR
            logger.log(
                level,
                f"HTTP {response.status_code} error from search provider",
                extra={"event": "search.request.error", "status_code": response.status_code, "url": url},
            )
            raise UpstreamUnavailable(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                url=url,
                provider=self.name,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(
                "Failed to parse search response as JSON",
                extra={"event": "search.response.invalid", "url": url},
            )
            raise UpstreamUnavailable(
                f"Failed to parse JSON response from {url}: {e}",
                status_code=response.status_code,
                url=url,
                provider=self.name,
            ) from e

        logger.debug(
            "Search request succeeded",
            extra={"event": "search.request.succeeded", "status_code": response.status_code},
        )
        return data

    def _truncate(self, results: List[RawResult], max_results: int) -> List[RawResult]:
        if len(results) > max_results:
            logger.warning(
                "Truncating search results to max_results",
                extra={"event": "search.results.truncated", "total": len(results), "max": max_results},
            )
            return results[:max_results]
        return results
