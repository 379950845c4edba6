"""Golfer profile and matching preference models."""

from datetime import datetime, timezone
from enum import Enum
from typing import FrozenSet, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from golfmatch.utils.errors import ValidationError

MIN_HANDICAP = -10
MAX_HANDICAP = 54


class PlayingTime(str, Enum):
    """Time slots a golfer likes to play in."""

    EARLY_MORNING = "early_morning"
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    WEEKENDS_ONLY = "weekends_only"


class PlayingStyle(str, Enum):
    COMPETITIVE = "competitive"
    CASUAL = "casual"
    BEGINNER_FRIENDLY = "beginner_friendly"


class PaceOfPlay(str, Enum):
    FAST = "fast"
    MODERATE = "moderate"
    RELAXED = "relaxed"


class GroupSize(str, Enum):
    TWOSOME = "twosome"
    FOURSOME = "foursome"
    FLEXIBLE = "flexible"


class SubscriptionTier(str, Enum):
    """
    Subscription tier enumeration.

    Controls daily like quota, search radius ceiling, filter availability
    and placement priority in discovery feeds.
    """

    FREE = "free"
    PREMIUM = "premium"


class Profile(BaseModel):
    """
    Golfer profile model.

    A read-only snapshot of a user's profile as supplied by the profile store.
    Instances are frozen so a discovery pass never observes a torn update.
    """

    id: str = Field(..., min_length=1, description="Unique user ID")
    full_name: Optional[str] = None
    home_course: Optional[str] = None
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    handicap: int = Field(..., ge=MIN_HANDICAP, le=MAX_HANDICAP)
    preferred_times: FrozenSet[PlayingTime] = Field(default_factory=frozenset)
    playing_style: PlayingStyle = PlayingStyle.CASUAL
    pace_of_play: PaceOfPlay = PaceOfPlay.MODERATE
    preferred_group_size: GroupSize = GroupSize.FLEXIBLE
    is_verified: bool = False
    avg_rating: float = Field(default=0.0, ge=0, le=5)
    total_rounds: int = Field(default=0, ge=0)
    last_active: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE

    model_config = ConfigDict(frozen=True)

    @property
    def is_premium(self) -> bool:
        """Whether the profile belongs to a premium subscriber."""
        return self.subscription_tier == SubscriptionTier.PREMIUM


class HandicapRange(BaseModel):
    """Inclusive range of acceptable partner handicaps."""

    min: int = MIN_HANDICAP
    max: int = MAX_HANDICAP

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def check_bounds(self) -> "HandicapRange":
        """
        Validate the handicap range.

        Raises:
            ValidationError: If min is greater than max.
        """
        if self.min > self.max:
            raise ValidationError(
                "Handicap range min must be less than or equal to max",
                details={"min": self.min, "max": self.max},
            )
        return self

    def contains(self, handicap: int) -> bool:
        return self.min <= handicap <= self.max


class MatchingPreferences(BaseModel):
    """
    Matching preferences model.

    Supplied fresh with every discovery request. Every set field is a hard
    admission constraint except `preferred_times`, which only feeds scoring.
    """

    max_distance: float = Field(..., description="Maximum distance in miles")
    handicap_range: HandicapRange = Field(default_factory=HandicapRange)
    preferred_times: FrozenSet[PlayingTime] = Field(default_factory=frozenset)
    playing_style: Optional[PlayingStyle] = None
    pace_of_play: Optional[PaceOfPlay] = None
    group_size: Optional[GroupSize] = None
    only_verified: bool = False
    min_rating: float = 0.0

    model_config = ConfigDict(frozen=True)

    @field_validator("max_distance")
    @classmethod
    def validate_distance(cls, v: float) -> float:
        """
        Validate the maximum distance.

        Raises:
            ValidationError: If the distance is not positive.
        """
        if v <= 0:
            raise ValidationError("Maximum distance must be greater than 0 miles", details={"max_distance": v})
        return v

    @field_validator("min_rating")
    @classmethod
    def validate_min_rating(cls, v: float) -> float:
        """
        Validate the minimum rating.

        Raises:
            ValidationError: If the rating is outside 0-5.
        """
        if v < 0 or v > 5:
            raise ValidationError("Minimum rating must be between 0 and 5", details={"min_rating": v})
        return v

    @property
    def uses_advanced_filters(self) -> bool:
        """Whether any premium-only filter is set."""
        return any(
            (
                self.playing_style is not None,
                self.pace_of_play is not None,
                self.group_size is not None,
                self.only_verified,
                self.min_rating > 0,
            )
        )
