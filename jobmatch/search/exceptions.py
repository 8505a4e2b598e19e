"""Errors raised while turning user intent into search results."""

from typing import List, Optional


class SearchError(Exception):
    """Base class for search-side failures."""

    pass


class InvalidInput(SearchError):
    """The caller's search request is unusable (missing role, malformed filters).

    Raised before any network or database work starts.
    """

    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class UpstreamUnavailable(SearchError):
    """An external provider failed: non-2xx status, timeout or unreadable body.

    Used for both the search provider and the embedding provider. Nothing in
    this package retries; the caller decides whether to run the search again.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        url: Optional[str] = None,
        provider: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url
        self.provider = provider
