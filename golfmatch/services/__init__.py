"""Services package for the GolfMatch core."""

from golfmatch.services.action_service import EngagementGate
from golfmatch.services.matching_service import (
    calculate_compatibility_score,
    calculate_match_score,
    filter_candidates,
    get_potential_matches,
    is_potential_match,
    rank_candidates,
    score_candidates,
)
from golfmatch.services.quota_service import QuotaTracker

__all__ = [
    "EngagementGate",
    "QuotaTracker",
    "calculate_compatibility_score",
    "calculate_match_score",
    "filter_candidates",
    "get_potential_matches",
    "is_potential_match",
    "rank_candidates",
    "score_candidates",
]
