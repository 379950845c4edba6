"""Validation of discovery requests before any candidate is examined."""

from typing import Optional

from golfmatch.models.profile import MatchingPreferences
from golfmatch.utils.errors import ValidationError

MIN_SEARCH_RADIUS = 5
MAX_SEARCH_RADIUS = 100


def validate_search_radius(radius: int | float | str) -> int:
    """
    Validate a requested search radius in miles.

    Raises:
        ValidationError: If the radius is not numeric or outside 5-100 miles.
    """
    try:
        value = float(radius)
    except (TypeError, ValueError):
        raise ValidationError("Search radius must be a valid number", details={"search_radius": radius}) from None
    if not MIN_SEARCH_RADIUS <= value <= MAX_SEARCH_RADIUS:
        raise ValidationError(
            f"Search radius must be between {MIN_SEARCH_RADIUS} and {MAX_SEARCH_RADIUS} miles",
            details={"search_radius": radius},
        )
    return int(value)


def validate_preferences(preferences: MatchingPreferences, search_radius: Optional[float] = None) -> None:
    """
    Re-check a preferences object and the request radius before a discovery pass.

    Model validators already reject malformed values at construction time; this
    also covers instances built with `model_construct`, so nothing is filtered
    with half-valid input.

    Raises:
        ValidationError: If any preference is malformed or the radius is outside 5-100 miles.
    """
    handicap_range = preferences.handicap_range
    if handicap_range.min > handicap_range.max:
        raise ValidationError(
            "Handicap range min must be less than or equal to max",
            details={"min": handicap_range.min, "max": handicap_range.max},
        )
    if preferences.max_distance <= 0:
        raise ValidationError(
            "Maximum distance must be greater than 0 miles", details={"max_distance": preferences.max_distance}
        )
    if not 0 <= preferences.min_rating <= 5:
        raise ValidationError("Minimum rating must be between 0 and 5", details={"min_rating": preferences.min_rating})
    if search_radius is not None:
        validate_search_radius(search_radius)
