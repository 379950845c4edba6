"""Key-value stores for usage counters.

Counters are small JSON documents keyed by ``ratelimit:{action}:{identifier}``
or ``quota:{action}:{user_id}``. Every store offers an atomic `update` so the
limit check and the increment are a single step.
"""

import threading
import time
from typing import Dict, Optional, Tuple

import redis
import sentry_sdk

from golfmatch.config import settings
from golfmatch.custom_types import CounterMutator, T
from golfmatch.models.usage import UsageCounter
from golfmatch.utils.errors import ConfigurationError
from golfmatch.utils.logging import get_logger

logger = get_logger(__name__)

# Minimum seconds between full expiry sweeps of the in-memory store
SWEEP_INTERVAL_SECONDS = 60


class InMemoryCounterStore:
    """
    Process-local counter store.

    Suitable for a single instance and for tests. Expired entries are dropped
    when they are read, and writes sweep out every expired entry once per
    `sweep_interval` seconds.
    """

    def __init__(self, sweep_interval: float = SWEEP_INTERVAL_SECONDS) -> None:
        self._entries: Dict[str, Tuple[UsageCounter, float]] = {}
        self._lock = threading.Lock()
        self._sweep_interval = sweep_interval
        self._next_sweep = time.monotonic() + sweep_interval

    def _read(self, key: str) -> Optional[UsageCounter]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        counter, expires_at = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return counter

    def _sweep(self, now: float) -> None:
        """Drop every expired entry, at most once per sweep interval."""
        if now < self._next_sweep:
            return
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self._sweep_interval
        if expired:
            logger.debug("Expired counters removed", count=len(expired))

    def _write(self, key: str, counter: UsageCounter, ttl_seconds: int) -> None:
        now = time.monotonic()
        self._sweep(now)
        self._entries[key] = (counter, now + max(1, ttl_seconds))

    def get(self, key: str) -> Optional[UsageCounter]:
        with self._lock:
            return self._read(key)

    def set(self, key: str, counter: UsageCounter, ttl_seconds: int) -> None:
        with self._lock:
            self._write(key, counter, ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def update(self, key: str, mutator: CounterMutator[T], ttl_seconds: int) -> T:
        with self._lock:
            updated, result = mutator(self._read(key))
            self._write(key, updated, ttl_seconds)
            return result

    def __len__(self) -> int:
        return len(self._entries)


class RedisClient:
    """
    Singleton holder for the Redis client used by counter stores.

    Unlike a cache, counters cannot silently degrade, so a missing or broken
    configuration raises instead of disabling the store.
    """

    _instance: Optional[redis.Redis] = None

    @classmethod
    def get_client(cls) -> redis.Redis:
        """
        Get or create a Redis client instance.

        Returns:
            redis.Redis: Client backed by a shared connection pool.

        Raises:
            ConfigurationError: If REDIS_URL is not configured or the pool cannot be created.
        """
        if cls._instance is None:
            if not settings.REDIS_URL:
                raise ConfigurationError("REDIS_URL is not configured")
            try:
                pool = redis.ConnectionPool.from_url(
                    settings.REDIS_URL,
                    max_connections=10,
                    decode_responses=True,  # Automatically decode bytes to strings
                )
                cls._instance = redis.Redis(connection_pool=pool)
                logger.info("Redis client initialized")
            except (redis.RedisError, ValueError) as e:
                raise ConfigurationError("Failed to initialize Redis client", details={"error": str(e)}) from e
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        cls._instance = None


class RedisCounterStore:
    """
    Redis-backed counter store shared by every service instance.

    `update` runs inside a WATCH/MULTI transaction; redis-py retries the
    callable when another client touched the key in between.
    """

    def __init__(self, client: Optional[redis.Redis] = None) -> None:
        self._client = client if client is not None else RedisClient.get_client()

    @staticmethod
    def _decode(raw: Optional[str]) -> Optional[UsageCounter]:
        if not raw:
            return None
        return UsageCounter.model_validate_json(raw)

    def get(self, key: str) -> Optional[UsageCounter]:
        with sentry_sdk.start_span(op="counter.get", name=key):
            return self._decode(self._client.get(key))  # type: ignore[arg-type]

    def set(self, key: str, counter: UsageCounter, ttl_seconds: int) -> None:
        with sentry_sdk.start_span(op="counter.set", name=key):
            self._client.set(key, counter.model_dump_json(), ex=max(1, ttl_seconds))

    def delete(self, key: str) -> None:
        with sentry_sdk.start_span(op="counter.delete", name=key):
            self._client.delete(key)

    def update(self, key: str, mutator: CounterMutator[T], ttl_seconds: int) -> T:
        def apply(pipe: redis.client.Pipeline) -> T:
            current = self._decode(pipe.get(key))  # type: ignore[arg-type]
            updated, result = mutator(current)
            pipe.multi()
            pipe.set(key, updated.model_dump_json(), ex=max(1, ttl_seconds))
            return result

        with sentry_sdk.start_span(op="counter.update", name=key):
            return self._client.transaction(apply, key, value_from_callable=True)
