"""Query composition and search provider access."""

from .client import DEFAULT_MAX_RESULTS, RawResult, SearchClient, TavilySearchClient
from .exceptions import InvalidInput, SearchError, UpstreamUnavailable
from .query import SearchParams, build_query, validate_search_params

__all__ = [
    "DEFAULT_MAX_RESULTS",
    "RawResult",
    "SearchClient",
    "TavilySearchClient",
    "InvalidInput",
    "SearchError",
    "UpstreamUnavailable",
    "SearchParams",
    "build_query",
    "validate_search_params",
]
