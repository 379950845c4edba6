"""In-process swipe log and match table."""

import threading
from typing import Dict, List, Optional, Set, Tuple

from golfmatch.models.match import Match, Swipe, make_pair_id
from golfmatch.utils.helpers import utcnow


class InMemoryLedger:
    """
    Swipe/match ledger held in process memory.

    Swipes are append-only. Match creation checks for an existing match under
    the ledger lock, so a pair can only ever get one match.
    """

    def __init__(self) -> None:
        self._swipes: List[Swipe] = []
        self._likes: Set[Tuple[str, str]] = set()
        self._matches: Dict[str, Match] = {}
        self._lock = threading.Lock()

    def record_swipe(self, swipe: Swipe) -> None:
        with self._lock:
            self._swipes.append(swipe)
            if swipe.is_like:
                self._likes.add((swipe.actor_id, swipe.target_id))

    def has_liked(self, actor_id: str, target_id: str) -> bool:
        with self._lock:
            return (actor_id, target_id) in self._likes

    def get_match(self, pair_id: str) -> Optional[Match]:
        with self._lock:
            return self._matches.get(pair_id)

    def get_or_create_match(self, user_a: str, user_b: str) -> Tuple[Match, bool]:
        pair_id = make_pair_id(user_a, user_b)
        with self._lock:
            existing = self._matches.get(pair_id)
            if existing is not None:
                return existing, False
            match = Match.for_pair(user_a, user_b, created_at=utcnow())
            self._matches[pair_id] = match
            return match, True

    def get_user_matches(self, user_id: str) -> List[Match]:
        with self._lock:
            matches = [m for m in self._matches.values() if user_id in (m.user1_id, m.user2_id)]
        return sorted(matches, key=lambda m: m.created_at, reverse=True)

    def get_incoming_likes(self, user_id: str) -> List[Swipe]:
        """Latest like from every user who liked `user_id`, newest first."""
        with self._lock:
            latest: Dict[str, Swipe] = {}
            for swipe in self._swipes:
                if swipe.is_like and swipe.target_id == user_id:
                    latest[swipe.actor_id] = swipe
        return sorted(latest.values(), key=lambda s: s.created_at, reverse=True)

    def get_swipes(self, actor_id: Optional[str] = None) -> List[Swipe]:
        with self._lock:
            return [s for s in self._swipes if actor_id is None or s.actor_id == actor_id]
