from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from golfmatch.models.profile import SubscriptionTier
from golfmatch.services.quota_service import QuotaTracker, quota_key

TIERS = {"free-user": SubscriptionTier.FREE, "premium-user": SubscriptionTier.PREMIUM}


@pytest.fixture
def tracker(counter_store, clock):
    return QuotaTracker(counter_store, TIERS.__getitem__, clock=clock)


def use_likes(tracker, user_id, count):
    return [tracker.consume(user_id) for _ in range(count)]


def test_fresh_free_user(tracker):
    status = tracker.can_consume("free-user")

    assert status.allowed is True
    assert status.used == 0
    assert status.limit == 15
    assert status.remaining == 15
    assert status.reset_at == datetime(2024, 3, 16, tzinfo=timezone.utc)
    assert status.is_unlimited is False


def test_consume_counts_down(tracker):
    assert use_likes(tracker, "free-user", 3) == [True, True, True]

    status = tracker.get_usage("free-user")

    assert status.used == 3
    assert status.remaining == 12


def test_free_user_denied_after_daily_limit(tracker, counter_store):
    assert all(use_likes(tracker, "free-user", 15))

    assert tracker.can_consume("free-user").allowed is False
    assert tracker.can_consume("free-user").remaining == 0
    assert tracker.consume("free-user") is False

    counter = counter_store.get(quota_key("free-user"))
    assert counter.count == 15
    assert counter.blocked is True
    assert counter.block_until == datetime(2024, 3, 16, tzinfo=timezone.utc)


def test_quota_resets_at_utc_midnight(tracker, clock):
    use_likes(tracker, "free-user", 15)

    clock.now = datetime(2024, 3, 15, 23, 59, 59, tzinfo=timezone.utc)
    assert tracker.can_consume("free-user").allowed is False

    clock.now = datetime(2024, 3, 16, 0, 0, 0, tzinfo=timezone.utc)
    status = tracker.can_consume("free-user")
    assert status.allowed is True
    assert status.remaining == 15
    assert status.reset_at == datetime(2024, 3, 17, tzinfo=timezone.utc)

    assert tracker.consume("free-user") is True
    assert tracker.can_consume("free-user").used == 1


def test_premium_user_never_touches_store(clock):
    store = MagicMock()
    tracker = QuotaTracker(store, TIERS.__getitem__, clock=clock)

    assert all(use_likes(tracker, "premium-user", 50))
    status = tracker.can_consume("premium-user")

    assert status.allowed is True
    assert status.is_unlimited is True
    assert status.limit is None
    assert status.remaining is None
    assert store.method_calls == []


def test_tier_is_resolved_on_every_call(counter_store, clock):
    tiers = {"user": SubscriptionTier.FREE}
    tracker = QuotaTracker(counter_store, tiers.__getitem__, clock=clock, daily_limit=1)

    assert tracker.consume("user") is True
    assert tracker.consume("user") is False

    tiers["user"] = SubscriptionTier.PREMIUM
    assert tracker.consume("user") is True
    assert tracker.can_consume("user").allowed is True


def test_custom_daily_limit(counter_store, clock):
    tracker = QuotaTracker(counter_store, TIERS.__getitem__, clock=clock, daily_limit=2)

    assert use_likes(tracker, "free-user", 3) == [True, True, False]


def test_reset(tracker):
    use_likes(tracker, "free-user", 15)

    tracker.reset("free-user")

    assert tracker.can_consume("free-user").remaining == 15
