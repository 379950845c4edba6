"""Matching service for the GolfMatch core.

Discovery is a read-only pipeline over a snapshot of profiles:
filter (hard constraints) -> score (weighted compatibility) -> rank
(premium placement, verification, rating, activity).
"""

import math
from typing import Iterable, List, Optional

import sentry_sdk

from golfmatch.config import settings
from golfmatch.models.match import MatchScore, ScoredCandidate
from golfmatch.models.profile import (
    GroupSize,
    MatchingPreferences,
    PaceOfPlay,
    PlayingStyle,
    Profile,
    SubscriptionTier,
)
from golfmatch.services.subscription_service import clamp_search_radius, require_feature
from golfmatch.utils.geo import profile_distance, within_radius
from golfmatch.utils.logging import get_logger, user_context
from golfmatch.utils.validators import validate_preferences

logger = get_logger(__name__)

# Factor weights (maximum points per factor)
DISTANCE_WEIGHT = 20
HANDICAP_WEIGHT = 15
STYLE_WEIGHT = 15
PACE_WEIGHT = 15
GROUP_SIZE_WEIGHT = 10
TIME_OVERLAP_WEIGHT = 15

HANDICAP_CUTOFF = 10
STYLE_PARTIAL = 10
PACE_PARTIAL = 10
GROUP_SIZE_PARTIAL = 5
RATING_BASELINE = 3
RATING_MULTIPLIER = 2
RATING_CAP = 10
MAX_SCORE = 100

COMPATIBLE_STYLES = frozenset({PlayingStyle.CASUAL, PlayingStyle.BEGINNER_FRIENDLY})
COMPATIBLE_PACES = frozenset({PaceOfPlay.MODERATE, PaceOfPlay.RELAXED})


def is_potential_match(
    seeker: Profile,
    candidate: Profile,
    preferences: MatchingPreferences,
    max_distance: Optional[float] = None,
) -> bool:
    """
    Check whether a candidate passes every hard constraint of the seeker.

    Args:
        seeker (Profile): The user looking for partners.
        candidate (Profile): The profile being considered.
        preferences (MatchingPreferences): The seeker's preferences for this request.
        max_distance (Optional[float]): Distance limit overriding `preferences.max_distance`.

    Returns:
        bool: True only if all admission predicates hold.
    """
    if candidate.id == seeker.id:
        return False

    limit = preferences.max_distance if max_distance is None else max_distance
    if not within_radius(seeker, candidate, limit):
        return False

    if not preferences.handicap_range.contains(candidate.handicap):
        return False

    if preferences.playing_style is not None and candidate.playing_style != preferences.playing_style:
        return False

    if preferences.pace_of_play is not None and candidate.pace_of_play != preferences.pace_of_play:
        return False

    if preferences.group_size is not None and candidate.preferred_group_size != preferences.group_size:
        return False

    if preferences.only_verified and not candidate.is_verified:
        return False

    if candidate.avg_rating < preferences.min_rating:
        return False

    return True


def filter_candidates(
    seeker: Profile,
    preferences: MatchingPreferences,
    candidates: Iterable[Profile],
    max_distance: Optional[float] = None,
) -> List[Profile]:
    """Return the candidates that pass every hard constraint, in input order."""
    return [
        candidate
        for candidate in candidates
        if is_potential_match(seeker, candidate, preferences, max_distance=max_distance)
    ]


def _distance_points(distance: float) -> float:
    cutoff = settings.MATCH_SCORE_DISTANCE_CUTOFF
    return max(0.0, cutoff - distance) / cutoff * DISTANCE_WEIGHT


def _handicap_points(first: int, second: int) -> float:
    return max(0, HANDICAP_CUTOFF - abs(first - second)) / HANDICAP_CUTOFF * HANDICAP_WEIGHT


def _style_points(first: PlayingStyle, second: PlayingStyle) -> float:
    if first == second:
        return STYLE_WEIGHT
    if {first, second} == COMPATIBLE_STYLES:
        return STYLE_PARTIAL
    return 0


def _pace_points(first: PaceOfPlay, second: PaceOfPlay) -> float:
    if first == second:
        return PACE_WEIGHT
    if {first, second} == COMPATIBLE_PACES:
        return PACE_PARTIAL
    return 0


def _group_size_points(first: GroupSize, second: GroupSize) -> float:
    if first == second:
        return GROUP_SIZE_WEIGHT
    if GroupSize.FLEXIBLE in (first, second):
        return GROUP_SIZE_PARTIAL
    return 0


def _time_overlap_points(seeker: Profile, candidate: Profile) -> float:
    larger = max(len(seeker.preferred_times), len(candidate.preferred_times))
    if larger == 0:
        return 0.0
    overlap = len(seeker.preferred_times & candidate.preferred_times)
    return overlap / larger * TIME_OVERLAP_WEIGHT


def _rating_points(first: float, second: float) -> float:
    average = (first + second) / 2
    return max(0.0, min(RATING_CAP, average - RATING_BASELINE) * RATING_MULTIPLIER)


def calculate_match_score(seeker: Profile, candidate: Profile) -> MatchScore:
    """
    Calculate the compatibility score between two golfers.

    Every factor is floored at zero before summing. The total is rounded half
    up and capped at 100. The result depends only on the two profiles.

    Args:
        seeker (Profile): The user the feed is built for.
        candidate (Profile): The profile being scored.

    Returns:
        MatchScore: Per-factor points and the total.
    """
    distance = _distance_points(profile_distance(seeker, candidate))
    handicap = _handicap_points(seeker.handicap, candidate.handicap)
    style = _style_points(seeker.playing_style, candidate.playing_style)
    pace = _pace_points(seeker.pace_of_play, candidate.pace_of_play)
    group_size = _group_size_points(seeker.preferred_group_size, candidate.preferred_group_size)
    time_overlap = _time_overlap_points(seeker, candidate)
    rating = _rating_points(seeker.avg_rating, candidate.avg_rating)

    raw = distance + handicap + style + pace + group_size + time_overlap + rating
    total = max(0, min(MAX_SCORE, math.floor(raw + 0.5)))

    return MatchScore(
        distance=distance,
        handicap=handicap,
        playing_style=style,
        pace=pace,
        group_size=group_size,
        time_overlap=time_overlap,
        rating=rating,
        total=total,
    )


def calculate_compatibility_score(seeker: Profile, candidate: Profile) -> int:
    """Total compatibility score (0-100) of a candidate for a seeker."""
    return calculate_match_score(seeker, candidate).total


def score_candidates(seeker: Profile, candidates: Iterable[Profile]) -> List[ScoredCandidate]:
    """Attach a compatibility score and distance to every candidate."""
    return [
        ScoredCandidate(
            profile=candidate,
            score=calculate_compatibility_score(seeker, candidate),
            distance=profile_distance(seeker, candidate),
        )
        for candidate in candidates
    ]


def _placement_key(scored: ScoredCandidate) -> tuple:
    profile = scored.profile
    return (not profile.is_premium, not profile.is_verified, -profile.avg_rating, -profile.total_rounds)


def rank_candidates(seeker_tier: SubscriptionTier, candidates: Iterable[ScoredCandidate]) -> List[ScoredCandidate]:
    """
    Order scored candidates for display.

    Premium candidates come first for every viewer tier, then verified
    profiles, then higher average rating, then more rounds played. The sort is
    stable, so full ties keep their input order. `seeker_tier` is accepted so
    callers state the viewer explicitly; it does not change the order.

    Args:
        seeker_tier (SubscriptionTier): Tier of the user viewing the feed.
        candidates (Iterable[ScoredCandidate]): Scored candidates in input order.

    Returns:
        List[ScoredCandidate]: The same elements, reordered.
    """
    return sorted(candidates, key=_placement_key)


def get_potential_matches(
    seeker: Profile,
    preferences: MatchingPreferences,
    candidates: Iterable[Profile],
    search_radius: Optional[float] = None,
) -> List[ScoredCandidate]:
    """
    Build a ranked discovery feed for a seeker.

    The effective distance limit is the smallest of the preference distance,
    the request's search radius and the tier's radius ceiling.

    Args:
        seeker (Profile): The user requesting the feed.
        preferences (MatchingPreferences): Preferences for this request.
        candidates (Iterable[Profile]): Candidate pool fetched by the caller.
        search_radius (Optional[float]): Maximum search radius of the request, in miles.

    Returns:
        List[ScoredCandidate]: Ranked candidates.

    Raises:
        ValidationError: If the preferences or radius are malformed. Raised before any candidate is examined.
        FeatureNotAvailableError: If a free-tier seeker uses premium-only filters.
    """
    with user_context(seeker.id), sentry_sdk.start_span(op="match.discover", name=seeker.id) as span:
        validate_preferences(preferences, search_radius)
        if preferences.uses_advanced_filters:
            require_feature(seeker.subscription_tier, "advanced_filters")

        max_distance = preferences.max_distance
        if search_radius is not None:
            max_distance = min(max_distance, search_radius)
        max_distance = clamp_search_radius(seeker.subscription_tier, max_distance)

        pool = list(candidates)
        admitted = filter_candidates(seeker, preferences, pool, max_distance=max_distance)
        ranked = rank_candidates(seeker.subscription_tier, score_candidates(seeker, admitted))

        logger.info(
            "Potential matches computed",
            user_id=seeker.id,
            pool_size=len(pool),
            admitted=len(admitted),
            max_distance=max_distance,
        )
        span.set_data("pool_size", len(pool))
        span.set_data("count", len(ranked))
        return ranked
