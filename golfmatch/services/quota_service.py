"""Daily like quota for the GolfMatch core.

The quota is a usage counter per user whose window is the UTC calendar day.
Premium users never touch the counter store.
"""

from datetime import datetime
from typing import Optional, Tuple

import sentry_sdk

from golfmatch.config import settings
from golfmatch.custom_types import Clock, CounterStore, TierResolver
from golfmatch.models.profile import SubscriptionTier
from golfmatch.models.usage import QuotaStatus, UsageCounter
from golfmatch.utils.helpers import seconds_until, start_of_day, start_of_next_day, utcnow
from golfmatch.utils.logging import get_logger

logger = get_logger(__name__)

DAILY_LIKE_ACTION = "daily_like"
QUOTA_KEY = "quota:{action}:{user_id}"


def quota_key(user_id: str) -> str:
    return QUOTA_KEY.format(action=DAILY_LIKE_ACTION, user_id=user_id)


class QuotaTracker:
    """
    Tier-aware daily like allowance.

    Args:
        store: Counter store shared with other instances.
        tier_resolver: Returns the current subscription tier of a user.
        clock: Source of the current UTC time.
        daily_limit: Likes per day for free users.
    """

    def __init__(
        self,
        store: CounterStore,
        tier_resolver: TierResolver,
        clock: Clock = utcnow,
        daily_limit: Optional[int] = None,
    ) -> None:
        self.store = store
        self.tier_resolver = tier_resolver
        self.clock = clock
        self.daily_limit = settings.FREE_DAILY_LIKES if daily_limit is None else daily_limit

    def _is_unlimited(self, user_id: str) -> bool:
        return self.tier_resolver(user_id) == SubscriptionTier.PREMIUM

    def _used_today(self, counter: Optional[UsageCounter], now: datetime) -> int:
        if counter is None or counter.window_start < start_of_day(now):
            return 0
        return counter.count

    def _status(self, user_id: str, used: int, now: datetime) -> QuotaStatus:
        remaining = max(0, self.daily_limit - used)
        return QuotaStatus(
            user_id=user_id,
            allowed=remaining > 0,
            used=used,
            limit=self.daily_limit,
            remaining=remaining,
            reset_at=start_of_next_day(now),
        )

    def _unlimited_status(self, user_id: str, now: datetime) -> QuotaStatus:
        return QuotaStatus(user_id=user_id, allowed=True, reset_at=start_of_next_day(now), is_unlimited=True)

    def can_consume(self, user_id: str) -> QuotaStatus:
        """
        Report whether a user may like another profile right now.

        Args:
            user_id: The acting user.

        Returns:
            QuotaStatus: Allowed flag, remaining likes and the next reset time.
        """
        now = self.clock()
        if self._is_unlimited(user_id):
            return self._unlimited_status(user_id, now)

        counter = self.store.get(quota_key(user_id))
        return self._status(user_id, self._used_today(counter, now), now)

    get_usage = can_consume

    def consume(self, user_id: str) -> bool:
        """
        Use one like from today's allowance.

        The limit check and the increment run as one atomic store update.

        Returns:
            bool: True if a like was consumed (always True for premium users).
        """
        now = self.clock()
        if self._is_unlimited(user_id):
            return True

        day_start = start_of_day(now)
        next_reset = start_of_next_day(now)
        ttl = seconds_until(next_reset, now) + 1

        def increment(counter: Optional[UsageCounter]) -> Tuple[UsageCounter, bool]:
            if counter is None or counter.window_start < day_start:
                counter = UsageCounter(identifier=user_id, action=DAILY_LIKE_ACTION, window_start=day_start)
            if counter.count >= self.daily_limit:
                return counter, False
            count = counter.count + 1
            exhausted = count >= self.daily_limit
            return (
                counter.model_copy(
                    update={"count": count, "blocked": exhausted, "block_until": next_reset if exhausted else None}
                ),
                True,
            )

        with sentry_sdk.start_span(op="quota.consume", name=user_id) as span:
            consumed = self.store.update(quota_key(user_id), increment, ttl)
            span.set_data("consumed", consumed)

        if not consumed:
            logger.info("Daily like quota exhausted", user_id=user_id, limit=self.daily_limit)
        return consumed

    def reset(self, user_id: str) -> None:
        """Clear today's counter for a user."""
        self.store.delete(quota_key(user_id))
        logger.info("Daily like quota reset", user_id=user_id)
