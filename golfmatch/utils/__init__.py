"""Utils package for the GolfMatch core."""

from golfmatch.utils.errors import (
    ConfigurationError,
    DatabaseError,
    FeatureNotAvailableError,
    GolfMatchError,
    QuotaExceededError,
    RateLimitBlockedError,
    RateLimitError,
    ValidationError,
)
from golfmatch.utils.geo import haversine_distance, profile_distance
from golfmatch.utils.logging import configure_logging, get_logger, log_error, user_context

__all__ = [
    "ConfigurationError",
    "DatabaseError",
    "FeatureNotAvailableError",
    "GolfMatchError",
    "QuotaExceededError",
    "RateLimitBlockedError",
    "RateLimitError",
    "ValidationError",
    "configure_logging",
    "get_logger",
    "haversine_distance",
    "log_error",
    "profile_distance",
    "user_context",
]
