"""pytest configuration and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import pytest

from golfmatch.models.profile import (
    GroupSize,
    MatchingPreferences,
    PaceOfPlay,
    PlayingStyle,
    PlayingTime,
    Profile,
    SubscriptionTier,
)
from golfmatch.utils.counter_store import InMemoryCounterStore
from golfmatch.utils.ledger import InMemoryLedger

# 2024-03-15 is a Friday; 10:30 UTC leaves 13.5 hours until the daily reset
NOW = datetime(2024, 3, 15, 10, 30, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable UTC clock for time-dependent services."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_profile(user_id: str, **overrides: Any) -> Profile:
    """Build a San Francisco profile with neutral attributes, overridden as needed."""
    data: Dict[str, Any] = {
        "id": user_id,
        "full_name": f"Golfer {user_id}",
        "latitude": 37.7749,
        "longitude": -122.4194,
        "handicap": 15,
        "preferred_times": frozenset({PlayingTime.MORNING}),
        "playing_style": PlayingStyle.CASUAL,
        "pace_of_play": PaceOfPlay.MODERATE,
        "preferred_group_size": GroupSize.TWOSOME,
        "avg_rating": 0.0,
        "total_rounds": 0,
        "last_active": NOW,
    }
    data.update(overrides)
    return Profile(**data)


# Bay Area sample golfers
SARAH = make_profile(
    "1",
    full_name="Sarah Johnson",
    home_course="Presidio Golf Course",
    preferred_times=frozenset({PlayingTime.EARLY_MORNING, PlayingTime.MORNING, PlayingTime.WEEKENDS_ONLY}),
    is_verified=True,
    avg_rating=4.2,
    total_rounds=8,
    subscription_tier=SubscriptionTier.PREMIUM,
)
MIKE = make_profile(
    "2",
    full_name="Mike Chen",
    home_course="Lake Chabot Golf Course",
    latitude=37.8044,
    longitude=-122.2711,
    handicap=0,
    preferred_times=frozenset({PlayingTime.EARLY_MORNING, PlayingTime.AFTERNOON}),
    playing_style=PlayingStyle.COMPETITIVE,
    pace_of_play=PaceOfPlay.FAST,
    preferred_group_size=GroupSize.FLEXIBLE,
    is_verified=True,
    avg_rating=4.8,
    total_rounds=15,
    subscription_tier=SubscriptionTier.PREMIUM,
)
DAVID = make_profile(
    "3",
    full_name="David Rodriguez",
    home_course="Tilden Park Golf Course",
    latitude=37.8716,
    longitude=-122.2727,
    handicap=18,
    preferred_times=frozenset({PlayingTime.MORNING, PlayingTime.WEEKENDS_ONLY}),
    playing_style=PlayingStyle.BEGINNER_FRIENDLY,
    pace_of_play=PaceOfPlay.RELAXED,
    avg_rating=3.9,
    total_rounds=5,
)
EMMA = make_profile(
    "4",
    full_name="Emma Wilson",
    home_course="San Jose Municipal",
    latitude=37.3382,
    longitude=-121.8863,
    handicap=25,
    preferred_times=frozenset({PlayingTime.AFTERNOON, PlayingTime.EVENING}),
    playing_style=PlayingStyle.BEGINNER_FRIENDLY,
    pace_of_play=PaceOfPlay.RELAXED,
)
JAMES = make_profile(
    "5",
    full_name="James Thompson",
    home_course="Palo Alto Golf Course",
    latitude=37.4419,
    longitude=-122.1430,
    handicap=8,
    preferred_times=frozenset({PlayingTime.MORNING, PlayingTime.AFTERNOON}),
    preferred_group_size=GroupSize.FOURSOME,
    is_verified=True,
    avg_rating=4.5,
    total_rounds=12,
    subscription_tier=SubscriptionTier.PREMIUM,
)

SAMPLE_PROFILES = [SARAH, MIKE, DAVID, EMMA, JAMES]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def counter_store():
    return InMemoryCounterStore()


@pytest.fixture
def ledger():
    return InMemoryLedger()


@pytest.fixture
def open_preferences():
    """Preferences that admit every sample profile within 100 miles."""
    return MatchingPreferences(max_distance=100)
