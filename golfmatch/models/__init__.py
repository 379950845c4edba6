"""Models package for the GolfMatch core."""

from golfmatch.models.match import Match, MatchScore, ScoredCandidate, Swipe, SwipeDirection, SwipeResult
from golfmatch.models.profile import (
    GroupSize,
    HandicapRange,
    MatchingPreferences,
    PaceOfPlay,
    PlayingStyle,
    PlayingTime,
    Profile,
    SubscriptionTier,
)
from golfmatch.models.usage import QuotaStatus, RateLimitConfig, RateLimitDecision, UsageCounter

__all__ = [
    "GroupSize",
    "HandicapRange",
    "Match",
    "MatchScore",
    "MatchingPreferences",
    "PaceOfPlay",
    "PlayingStyle",
    "PlayingTime",
    "Profile",
    "QuotaStatus",
    "RateLimitConfig",
    "RateLimitDecision",
    "ScoredCandidate",
    "SubscriptionTier",
    "Swipe",
    "SwipeDirection",
    "SwipeResult",
    "UsageCounter",
]
