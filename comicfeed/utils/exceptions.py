"""
ComicFeed Custom Exceptions
===========================

Custom exception hierarchy for ComicFeed with error codes, context
information, and user-friendly error messages.
"""

from typing import Optional, Dict, Any, List
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration errors (C001-C099)
    CONFIG_INVALID = "C001"

    # Feed ingestion errors (F001-F099)
    FEED_NETWORK_ERROR = "F002"
    FEED_HTTP_STATUS = "F003"
    FEED_FETCH_EXHAUSTED = "F004"
    FEED_PARSE_ERROR = "F005"
    FEED_UNKNOWN_FORMAT = "F006"


class ComicFeedError(Exception):
    """Base exception for all ComicFeed errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize ComicFeed error.

        Args:
            message: Technical error message for logging
            error_code: Categorized error code
            context: Additional context information
            user_message: User-friendly error message
            recoverable: Whether the error is recoverable
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.user_message = user_message or message
        self.recoverable = recoverable

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        """String representation with error code."""
        if self.error_code:
            return f"[{self.error_code.value}] {super().__str__()}"
        return super().__str__()


class ConfigurationError(ComicFeedError):
    """Configuration-related errors."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        """Initialize configuration error.

        Args:
            message: Error message
            config_key: Configuration key that caused the error
            **kwargs: Additional arguments for ComicFeedError
        """
        context = kwargs.get("context", {})
        if config_key:
            context["config_key"] = config_key

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.CONFIG_INVALID),
            context=context,
            user_message=kwargs.get("user_message", f"Configuration error: {message}"),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message"]
            },
        )


class FeedError(ComicFeedError):
    """Feed retrieval and parsing errors."""

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        """Initialize feed error.

        Args:
            message: Error message
            feed_url: Feed URL that caused the error
            **kwargs: Additional arguments for ComicFeedError
        """
        context = kwargs.get("context", {})
        if feed_url:
            context["feed_url"] = feed_url
        self.feed_url = feed_url

        super().__init__(
            message=message,
            error_code=kwargs.get("error_code", ErrorCode.FEED_NETWORK_ERROR),
            context=context,
            user_message=kwargs.get("user_message", message),
            recoverable=kwargs.get("recoverable", True),
            **{
                k: v
                for k, v in kwargs.items()
                if k not in ["context", "error_code", "user_message", "recoverable"]
            },
        )


class NetworkFailure(FeedError):
    """A single transport attempt was unreachable or returned a non-success status."""

    def __init__(
        self,
        message: str,
        request_url: str,
        status: Optional[int] = None,
        **kwargs,
    ):
        """Initialize network failure.

        Args:
            message: Error message
            request_url: URL actually requested (direct or relay)
            status: HTTP status when a response was received
            **kwargs: Additional arguments for FeedError
        """
        context = kwargs.pop("context", {})
        context["request_url"] = request_url
        if status is not None:
            context["status"] = status
        self.request_url = request_url
        self.status = status

        default_code = (
            ErrorCode.FEED_HTTP_STATUS if status is not None else ErrorCode.FEED_NETWORK_ERROR
        )
        super().__init__(
            message,
            context=context,
            error_code=kwargs.pop("error_code", default_code),
            **kwargs,
        )


class FetchExhausted(FeedError):
    """Every transport attempt (direct plus all relays) failed."""

    def __init__(
        self,
        message: str,
        attempts: int,
        failures: Optional[List[NetworkFailure]] = None,
        **kwargs,
    ):
        """Initialize fetch exhaustion.

        Args:
            message: Error message
            attempts: Number of attempts made
            failures: Individual attempt failures in attempt order
            **kwargs: Additional arguments for FeedError
        """
        context = kwargs.pop("context", {})
        context["attempts"] = attempts
        self.attempts = attempts
        self.failures = list(failures or [])

        super().__init__(
            message,
            context=context,
            error_code=kwargs.pop("error_code", ErrorCode.FEED_FETCH_EXHAUSTED),
            **kwargs,
        )


class InvalidFeedFormat(FeedError):
    """Document could not be parsed as well-formed XML."""

    def __init__(self, message: str = "Invalid feed format", **kwargs):
        super().__init__(
            message,
            error_code=kwargs.pop("error_code", ErrorCode.FEED_PARSE_ERROR),
            recoverable=kwargs.pop("recoverable", False),
            **kwargs,
        )


class UnknownFeedFormat(FeedError):
    """Well-formed XML that is neither RSS nor Atom."""

    def __init__(self, message: str = "Unknown feed format", **kwargs):
        super().__init__(
            message,
            error_code=kwargs.pop("error_code", ErrorCode.FEED_UNKNOWN_FORMAT),
            recoverable=kwargs.pop("recoverable", False),
            **kwargs,
        )


# Exception handling utilities


def get_user_friendly_message(exception: Exception) -> str:
    """Get user-friendly error message for any exception.

    Args:
        exception: Exception to get message for

    Returns:
        User-friendly error message
    """
    if isinstance(exception, ComicFeedError):
        return exception.user_message

    return "An unexpected error occurred. Please try again later."
