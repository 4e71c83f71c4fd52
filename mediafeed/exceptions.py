"""
Custom exceptions for the media aggregation pipeline.

This module defines the error taxonomy used between the upstream
clients, the post normalizer and the aggregator. Everything below the
aggregator boundary is converted into one of these types.
"""

from typing import Optional, Union


class MediaFeedError(Exception):
    """
    Base exception for all media feed errors.

    Use this for catching any pipeline-related error.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        """
        Initialize MediaFeedError.

        Args:
            message: Error description
            status_code: Optional HTTP-like status code
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class UpstreamAuthError(MediaFeedError):
    """
    Raised when an upstream token exchange fails.

    This occurs when:
    - Reddit client_id or client_secret is missing or rejected
    - The clip API refuses to issue a temporary token
    - The token endpoint is unreachable

    Fatal for an aggregation run only if no channel could obtain a token.

    Example:
        >>> raise UpstreamAuthError("Reddit token exchange failed")
    """

    def __init__(self, message: str = "Upstream token exchange failed") -> None:
        super().__init__(message, status_code=401)


class FetchError(MediaFeedError):
    """
    Raised when a single channel listing or clip resolution fails.

    Always recovered locally: the failing channel (or post) contributes
    no items to the run.

    Attributes:
        source: Channel name or clip id that failed
        cause: Underlying exception or reason string

    Example:
        >>> raise FetchError("pics", cause="HTTP 503")
    """

    def __init__(
        self,
        source: str,
        cause: Union[Exception, str, None] = None,
        status_code: Optional[int] = None,
    ) -> None:
        self.source = source
        self.cause = cause

        message = f"Fetch failed for '{source}'"
        if cause is not None:
            message = f"{message}: {cause}"

        super().__init__(message, status_code=status_code or 502)


class NormalizationSkip(MediaFeedError):
    """
    Signals that a raw post legitimately yields no media item.

    Not a true error. Raised inside the normalizer decision steps and
    caught by PostNormalizer.normalize().
    """

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


class InvalidCategory(MediaFeedError):
    """
    Raised when a category name is not present in the configuration.

    Surfaced to callers as an empty result with a warning, never as a
    failed request.
    """

    def __init__(self, category: str) -> None:
        self.category = category
        super().__init__(f"Category '{category}' not found", status_code=404)


class CategoryConfigError(MediaFeedError):
    """Raised when the category configuration cannot be loaded or parsed."""

    def __init__(self, message: str) -> None:
        super().__init__(message, status_code=500)
