"""Swipe, match and discovery result models."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from golfmatch.models.profile import Profile


def make_pair_id(user_a: str, user_b: str) -> str:
    """Order-independent identifier for a pair of users."""
    first, second = sorted((user_a, user_b))
    return f"{first}:{second}"


class SwipeDirection(str, Enum):
    """
    Swipe direction enumeration.

    Only LIKE swipes consume quota and can form a match.
    """

    LIKE = "like"
    PASS = "pass"


class Swipe(BaseModel):
    """Represents a swipe from one user on another. Append-only once written."""

    actor_id: str = Field(..., description="ID of the user performing the swipe.")
    target_id: str = Field(..., description="ID of the user being swiped on.")
    direction: SwipeDirection
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="before")
    @classmethod
    def check_self_swipe(cls, values: Dict[str, Any]) -> Dict[str, Any]:
        actor_id = values.get("actor_id")
        target_id = values.get("target_id")
        if actor_id and target_id and actor_id == target_id:
            raise ValueError("Actor and target user cannot be the same.")
        return values

    @field_validator("actor_id", "target_id")
    @classmethod
    def not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("User IDs cannot be empty")
        return v

    @property
    def is_like(self) -> bool:
        return self.direction == SwipeDirection.LIKE

    model_config = ConfigDict(frozen=True, extra="forbid")


class Match(BaseModel):
    """
    Match model.

    Created exactly once when two users have liked each other. The id is the
    pair id of the two users, so a pair can never hold two matches.
    """

    id: str
    user1_id: str
    user2_id: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)

    @classmethod
    def for_pair(cls, user_a: str, user_b: str, created_at: Optional[datetime] = None) -> "Match":
        """Build the match for two users with sorted user ids."""
        first, second = sorted((user_a, user_b))
        data: Dict[str, Any] = {"id": make_pair_id(first, second), "user1_id": first, "user2_id": second}
        if created_at is not None:
            data["created_at"] = created_at
        return cls(**data)

    def other_user(self, user_id: str) -> str:
        """Return the id of the partner of `user_id` in this match."""
        return self.user2_id if self.user1_id == user_id else self.user1_id


class MatchScore(BaseModel):
    """
    Match score model.

    Per-factor breakdown of a compatibility score. Each factor is already
    weighted; `total` is the rounded and clamped sum.
    """

    distance: float
    handicap: float
    playing_style: float
    pace: float
    group_size: float
    time_overlap: float
    rating: float
    total: int


class ScoredCandidate(BaseModel):
    """A candidate profile with its compatibility score for one discovery request."""

    profile: Profile
    score: int = Field(..., ge=0, le=100)
    distance: float = Field(default=0.0, ge=0)

    model_config = ConfigDict(frozen=True)


class SwipeResult(BaseModel):
    """Outcome of a swipe, returned to the calling application layer."""

    accepted: bool
    is_match: bool = False
    match_id: Optional[str] = None
