"""Fixed-window rate limiting with block escalation.

The decision logic is a pure state machine over `UsageCounter` values
(`evaluate_attempt`, `peek_counter`). `RateLimiter` binds it to a
`CounterStore` so counters can live in process memory or in Redis.

Counter states per (identifier, action) key:

* Open: ``count < max_attempts``. An attempt increments the count.
* Blocked: the attempt that would push the count past ``max_attempts`` sets
  ``blocked`` and ``block_until``. Every attempt is denied until
  ``now > block_until``, after which the key starts over with a fresh window.
* An Open counter whose window has elapsed restarts at zero.
"""

from datetime import datetime, timedelta
from typing import Dict, Mapping, Optional, Tuple

from golfmatch.custom_types import Clock, CounterStore
from golfmatch.models.usage import RateLimitConfig, RateLimitDecision, UsageCounter
from golfmatch.utils.errors import ConfigurationError, RateLimitBlockedError
from golfmatch.utils.helpers import seconds_until, utcnow
from golfmatch.utils.logging import get_logger

logger = get_logger(__name__)

# Key prefix for counter storage
RATE_LIMIT_KEY = "ratelimit:{action}:{identifier}"

# Remaining attempts at which a warning is logged
WARNING_THRESHOLD = 2

RATE_LIMITS: Dict[str, RateLimitConfig] = {
    # Authentication
    "login": RateLimitConfig(window_seconds=15 * 60, max_attempts=5, block_seconds=30 * 60, reset_on_success=True),
    "registration": RateLimitConfig(window_seconds=60 * 60, max_attempts=3, block_seconds=60 * 60),
    "password_reset": RateLimitConfig(window_seconds=60 * 60, max_attempts=3, block_seconds=60 * 60),
    # Application actions
    "profile_update": RateLimitConfig(window_seconds=60, max_attempts=10, block_seconds=5 * 60),
    "message_send": RateLimitConfig(window_seconds=60, max_attempts=30, block_seconds=10 * 60),
    "swipe": RateLimitConfig(window_seconds=60, max_attempts=100, block_seconds=5 * 60),
    "general_api": RateLimitConfig(window_seconds=60, max_attempts=60, block_seconds=5 * 60),
}


def rate_limit_key(identifier: str, action: str) -> str:
    return RATE_LIMIT_KEY.format(action=action, identifier=identifier)


def _fresh_counter(identifier: str, action: str, now: datetime) -> UsageCounter:
    return UsageCounter(identifier=identifier, action=action, window_start=now)


def _current_counter(
    counter: Optional[UsageCounter], config: RateLimitConfig, identifier: str, action: str, now: datetime
) -> UsageCounter:
    """Return the counter that is live at `now`, superseding expired windows and blocks."""
    if counter is None:
        return _fresh_counter(identifier, action, now)
    if counter.blocked:
        if counter.block_until is not None and now > counter.block_until:
            return _fresh_counter(identifier, action, now)
        return counter
    if now > counter.window_start + config.window:
        return _fresh_counter(identifier, action, now)
    return counter


def evaluate_attempt(
    counter: Optional[UsageCounter],
    config: RateLimitConfig,
    identifier: str,
    action: str,
    now: datetime,
) -> Tuple[UsageCounter, RateLimitDecision]:
    """
    Apply one attempt to a counter.

    Args:
        counter: Stored counter for the key, or None when there is none.
        config: Limits for the action.
        identifier: User id, IP or other caller identity.
        action: Action kind the counter belongs to.
        now: Evaluation time.

    Returns:
        Tuple[UsageCounter, RateLimitDecision]: The counter to store and the decision.
    """
    current = _current_counter(counter, config, identifier, action, now)

    if current.blocked:
        block_until = current.block_until or now
        return current, RateLimitDecision(
            allowed=False,
            remaining=0,
            reset_at=block_until,
            blocked=True,
            retry_after=seconds_until(block_until, now),
        )

    if current.count >= config.max_attempts:
        block_until = now + config.block_duration
        blocked = current.model_copy(update={"blocked": True, "block_until": block_until})
        return blocked, RateLimitDecision(
            allowed=False,
            remaining=0,
            reset_at=block_until,
            blocked=True,
            retry_after=config.block_seconds,
            block_started=True,
        )

    incremented = current.model_copy(update={"count": current.count + 1})
    return incremented, RateLimitDecision(
        allowed=True,
        remaining=config.max_attempts - incremented.count,
        reset_at=incremented.window_start + config.window,
    )


def peek_counter(
    counter: Optional[UsageCounter],
    config: RateLimitConfig,
    identifier: str,
    action: str,
    now: datetime,
) -> RateLimitDecision:
    """Describe a counter without recording an attempt."""
    current = _current_counter(counter, config, identifier, action, now)
    if current.blocked:
        block_until = current.block_until or now
        return RateLimitDecision(
            allowed=False,
            remaining=0,
            reset_at=block_until,
            blocked=True,
            retry_after=seconds_until(block_until, now),
        )
    remaining = max(0, config.max_attempts - current.count)
    return RateLimitDecision(
        allowed=remaining > 0,
        remaining=remaining,
        reset_at=current.window_start + config.window,
    )


class RateLimiter:
    """
    Store-backed rate limiter keyed by (identifier, action).

    Each action kind has its own `RateLimitConfig`; keys are independent, so a
    block on one action does not affect another action for the same identifier.
    """

    def __init__(
        self,
        store: CounterStore,
        limits: Optional[Mapping[str, RateLimitConfig]] = None,
        clock: Clock = utcnow,
    ) -> None:
        self.store = store
        self.limits: Dict[str, RateLimitConfig] = dict(RATE_LIMITS if limits is None else limits)
        self.clock = clock

    def get_config(self, action: str) -> RateLimitConfig:
        """
        Look up the configuration for an action.

        Raises:
            ConfigurationError: If the action has no configured limits.
        """
        try:
            return self.limits[action]
        except KeyError:
            raise ConfigurationError(
                f"Unknown rate limit action: {action}", details={"action": action}
            ) from None

    def check(self, identifier: str, action: str) -> RateLimitDecision:
        """
        Record an attempt and decide whether it is allowed.

        The read, the state transition and the write happen in one atomic
        store update, so concurrent attempts cannot both take the last slot.

        Args:
            identifier: Caller identity (user id, IP address).
            action: Configured action kind.

        Returns:
            RateLimitDecision: The decision for this attempt.
        """
        config = self.get_config(action)
        now = self.clock()
        key = rate_limit_key(identifier, action)
        ttl = max(config.window_seconds, config.block_seconds) + 1

        def mutate(counter: Optional[UsageCounter]) -> Tuple[UsageCounter, RateLimitDecision]:
            return evaluate_attempt(counter, config, identifier, action, now)

        decision = self.store.update(key, mutate, ttl)

        if decision.block_started:
            logger.warning(
                "rate_limit_exceeded",
                identifier=identifier,
                action=action,
                max_attempts=config.max_attempts,
                block_duration=config.block_seconds,
            )
        return decision

    def enforce(self, identifier: str, action: str) -> RateLimitDecision:
        """
        Record an attempt and raise when it is denied.

        Raises:
            RateLimitBlockedError: If the identifier is blocked for the action.
        """
        decision = self.check(identifier, action)

        if not decision.allowed:
            logger.warning(
                "rate_limit_blocked",
                identifier=identifier,
                action=action,
                retry_after=decision.retry_after,
            )
            raise RateLimitBlockedError(
                "You are temporarily blocked due to too many requests",
                action=action,
                retry_after=decision.retry_after,
                details={"identifier": identifier},
            )

        if decision.remaining <= WARNING_THRESHOLD:
            logger.warning("rate_limit_warning", identifier=identifier, action=action, remaining=decision.remaining)

        return decision

    def get_info(self, identifier: str, action: str) -> RateLimitDecision:
        """Current limit state for an identifier without counting an attempt."""
        config = self.get_config(action)
        counter = self.store.get(rate_limit_key(identifier, action))
        return peek_counter(counter, config, identifier, action, self.clock())

    def record_success(self, identifier: str, action: str) -> None:
        """Clear the counter after a successful attempt for actions that reset on success."""
        config = self.get_config(action)
        if not config.reset_on_success:
            return
        self.store.delete(rate_limit_key(identifier, action))
        logger.info("rate_limit_reset_success", identifier=identifier, action=action)

    def block_identifier(self, identifier: str, action: str, duration: Optional[int] = None) -> UsageCounter:
        """
        Manually block an identifier, e.g. after suspicious activity.

        Args:
            identifier: Caller identity to block.
            action: Action kind to block.
            duration: Block length in seconds, defaults to the action's block duration.

        Returns:
            UsageCounter: The stored blocked counter.
        """
        config = self.get_config(action)
        now = self.clock()
        block_seconds = duration or config.block_seconds
        counter = UsageCounter(
            identifier=identifier,
            action=action,
            window_start=now,
            count=config.max_attempts,
            blocked=True,
            block_until=now + timedelta(seconds=block_seconds),
        )
        self.store.set(rate_limit_key(identifier, action), counter, block_seconds + 1)
        logger.warning("rate_limit_manual_block", identifier=identifier, action=action, block_duration=block_seconds)
        return counter
