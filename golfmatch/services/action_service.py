"""Service layer for swipes: like quota, swipe recording and match detection."""

import threading
import weakref
from typing import List, Optional

import sentry_sdk

from golfmatch.custom_types import EngagementLedger
from golfmatch.models.match import Match, Swipe, SwipeDirection, SwipeResult
from golfmatch.models.profile import Profile
from golfmatch.services.quota_service import QuotaTracker
from golfmatch.services.subscription_service import require_feature
from golfmatch.utils.errors import QuotaExceededError, ValidationError
from golfmatch.utils.helpers import format_time_until_reset, seconds_until
from golfmatch.utils.logging import get_logger, user_context
from golfmatch.utils.rate_limiter import RateLimiter

logger = get_logger(__name__)

SWIPE_RATE_LIMIT_ACTION = "swipe"


class EngagementGate:
    """
    Gate every swipe behind the like quota and detect reciprocal likes.

    Swipes of one actor are processed one at a time, so two concurrent likes
    cannot both see the last unit of quota. Match creation is idempotent in
    the ledger.

    Args:
        quota: Daily like allowance.
        ledger: Swipe log and match table.
        rate_limiter: Optional abuse-prevention limiter applied to every swipe.
    """

    def __init__(
        self,
        quota: QuotaTracker,
        ledger: EngagementLedger,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self.quota = quota
        self.ledger = ledger
        self.rate_limiter = rate_limiter
        # Locks live only while a swipe of that user holds them
        self._locks: "weakref.WeakValueDictionary[str, threading.Lock]" = weakref.WeakValueDictionary()
        self._locks_guard = threading.Lock()

    def _lock_for(self, user_id: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_id] = lock
            return lock

    def _quota_exceeded(self, actor_id: str) -> QuotaExceededError:
        status = self.quota.can_consume(actor_id)
        now = self.quota.clock()
        return QuotaExceededError(
            f"Daily like limit reached. Resets in {format_time_until_reset(status.reset_at, now)}",
            retry_after=seconds_until(status.reset_at, now),
            reset_at=status.reset_at,
            details={"user_id": actor_id, "limit": status.limit},
        )

    def swipe(self, actor_id: str, target_id: str, direction: SwipeDirection) -> SwipeResult:
        """
        Process a like or pass from `actor_id` on `target_id`.

        A like takes one unit of the daily quota in a single atomic store
        update before anything is recorded, so an over-quota like never
        reaches the ledger, even when several instances share the quota store.

        Args:
            actor_id: The user swiping.
            target_id: The profile being swiped on.
            direction: LIKE or PASS.

        Returns:
            SwipeResult: Whether the swipe was accepted and whether it formed a match.

        Raises:
            ValidationError: If the direction is unknown or a user swipes on themselves.
            RateLimitBlockedError: If the actor is blocked for swiping too fast.
            QuotaExceededError: If a like is attempted with no likes left today. Nothing is recorded.
        """
        try:
            direction = SwipeDirection(direction)
        except ValueError:
            raise ValidationError("Unknown swipe direction", details={"direction": direction}) from None
        if not actor_id or not target_id:
            raise ValidationError("User IDs cannot be empty")
        if actor_id == target_id:
            raise ValidationError("Users cannot swipe on themselves", details={"user_id": actor_id})

        with user_context(actor_id), sentry_sdk.start_span(op="match.swipe", name=f"{actor_id} -> {target_id}") as span:
            if self.rate_limiter is not None:
                self.rate_limiter.enforce(actor_id, SWIPE_RATE_LIMIT_ACTION)

            is_like = direction == SwipeDirection.LIKE
            lock = self._lock_for(actor_id)
            with lock:
                if is_like and not self.quota.consume(actor_id):
                    logger.info("Like rejected, daily quota used", actor=actor_id, target=target_id)
                    span.set_data("outcome", "quota_exceeded")
                    raise self._quota_exceeded(actor_id)

                self.ledger.record_swipe(
                    Swipe(actor_id=actor_id, target_id=target_id, direction=direction, created_at=self.quota.clock())
                )
                match = self._detect_match(actor_id, target_id) if is_like else None

            span.set_data("outcome", "match" if match else "recorded")
            logger.info(
                "Swipe processed",
                actor=actor_id,
                target=target_id,
                direction=direction.value,
                is_match=match is not None,
            )
            return SwipeResult(accepted=True, is_match=match is not None, match_id=match.id if match else None)

    def _detect_match(self, actor_id: str, target_id: str) -> Optional[Match]:
        """Return the pair's match if the target has already liked the actor."""
        if not self.ledger.has_liked(target_id, actor_id):
            return None
        match, created = self.ledger.get_or_create_match(actor_id, target_id)
        if created:
            logger.info("Match created", match_id=match.id, user1_id=match.user1_id, user2_id=match.user2_id)
        return match

    def like(self, actor_id: str, target_id: str) -> SwipeResult:
        return self.swipe(actor_id, target_id, SwipeDirection.LIKE)

    def pass_(self, actor_id: str, target_id: str) -> SwipeResult:
        return self.swipe(actor_id, target_id, SwipeDirection.PASS)

    def get_matches(self, user_id: str) -> List[Match]:
        """Matches involving a user, newest first."""
        return self.ledger.get_user_matches(user_id)

    def get_incoming_likes(self, viewer: Profile) -> List[Swipe]:
        """
        Users who liked the viewer and are not matched with them yet.

        Raises:
            FeatureNotAvailableError: If the viewer's tier cannot see incoming likes.
        """
        require_feature(viewer.subscription_tier, "see_who_liked_you")
        matched = {match.other_user(viewer.id) for match in self.ledger.get_user_matches(viewer.id)}
        return [swipe for swipe in self.ledger.get_incoming_likes(viewer.id) if swipe.actor_id not in matched]
