"""Type definitions for the GolfMatch core."""

from datetime import datetime
from typing import Callable, List, Optional, Protocol, Tuple, TypeVar

from golfmatch.models.match import Match, Swipe
from golfmatch.models.profile import SubscriptionTier
from golfmatch.models.usage import UsageCounter

T = TypeVar("T")

Clock = Callable[[], datetime]
TierResolver = Callable[[str], SubscriptionTier]
CounterMutator = Callable[[Optional[UsageCounter]], Tuple[UsageCounter, T]]


class CounterStore(Protocol):
    """Protocol for the key-value store backing usage counters."""

    def get(self, key: str) -> Optional[UsageCounter]: ...

    def set(self, key: str, counter: UsageCounter, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...

    def update(self, key: str, mutator: CounterMutator[T], ttl_seconds: int) -> T:
        """Atomically read, transform and write one counter, returning the mutator's result."""
        ...


class EngagementLedger(Protocol):
    """Protocol for the append-only swipe log and the match table."""

    def record_swipe(self, swipe: Swipe) -> None: ...

    def has_liked(self, actor_id: str, target_id: str) -> bool: ...

    def get_match(self, pair_id: str) -> Optional[Match]: ...

    def get_or_create_match(self, user_a: str, user_b: str) -> Tuple[Match, bool]:
        """Return the pair's match, creating it only if none exists. The flag is True when created."""
        ...

    def get_user_matches(self, user_id: str) -> List[Match]: ...

    def get_incoming_likes(self, user_id: str) -> List[Swipe]: ...
