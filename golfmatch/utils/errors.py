"""Custom exceptions for the GolfMatch core."""

from datetime import datetime
from typing import Any, Dict, Optional


class GolfMatchError(Exception):
    """Base exception for all GolfMatch errors."""

    def __init__(self, message: str, status_code: int = 500, details: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the error with a message and optional details.

        Args:
            message (str): Error message describing what went wrong.
            status_code (int): HTTP status code associated with the error (default 500).
            details (Optional[Dict[str, Any]]): Additional context or debug information.
        """
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(GolfMatchError):
    """Raised when there's an issue with the application configuration."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 500, details)


class DatabaseError(GolfMatchError):
    """Raised when there's an issue with the swipe/match ledger storage."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 500, details)


class ValidationError(GolfMatchError):
    """Raised when data validation fails (e.g. a handicap range with min > max)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, 400, details)


class FeatureNotAvailableError(GolfMatchError):
    """Raised when a subscription tier does not include the requested feature."""

    def __init__(self, message: str, feature: str, details: Optional[Dict[str, Any]] = None) -> None:
        """
        Initialize the feature error.

        Args:
            message (str): Error message.
            feature (str): Name of the plan feature that was requested.
            details (Optional[Dict[str, Any]]): Additional details.
        """
        error_details = details or {}
        error_details["feature"] = feature
        self.feature = feature
        super().__init__(message, 403, error_details)


class RateLimitError(GolfMatchError):
    """Raised when rate limiting is triggered."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Initialize the rate limit error.

        Args:
            message (str): Error message.
            retry_after (Optional[int]): Seconds the caller should wait before trying again.
            details (Optional[Dict[str, Any]]): Additional details.
        """
        error_details = details or {}
        if retry_after is not None:
            error_details["retry_after"] = retry_after
        self.retry_after = retry_after
        super().__init__(message, 429, error_details)


class QuotaExceededError(RateLimitError):
    """Raised when a user has used up the daily like allowance of their tier."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        reset_at: Optional[datetime] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        if reset_at is not None:
            error_details["reset_at"] = reset_at.isoformat()
        self.reset_at = reset_at
        super().__init__(message, retry_after, error_details)


class RateLimitBlockedError(RateLimitError):
    """Raised when an identifier is blocked for an abuse-prevention action."""

    def __init__(
        self,
        message: str,
        action: str,
        retry_after: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        error_details = details or {}
        error_details["action"] = action
        self.action = action
        super().__init__(message, retry_after, error_details)
