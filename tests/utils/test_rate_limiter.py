from datetime import timedelta
from unittest.mock import patch

import pytest

from golfmatch.models.usage import RateLimitConfig, UsageCounter
from golfmatch.utils.errors import ConfigurationError, RateLimitBlockedError
from golfmatch.utils.rate_limiter import (
    RATE_LIMITS,
    RateLimiter,
    evaluate_attempt,
    peek_counter,
    rate_limit_key,
)
from tests.conftest import NOW

LIMITS = {
    "test": RateLimitConfig(window_seconds=60, max_attempts=5, block_seconds=300),
    "login": RATE_LIMITS["login"],
}


@pytest.fixture
def limiter(counter_store, clock):
    return RateLimiter(counter_store, limits=LIMITS, clock=clock)


class TestEvaluateAttempt:
    def test_first_attempt_starts_window(self):
        config = LIMITS["test"]
        counter, decision = evaluate_attempt(None, config, "user-1", "test", NOW)

        assert counter.count == 1
        assert counter.window_start == NOW
        assert decision.allowed is True
        assert decision.remaining == 4
        assert decision.reset_at == NOW + timedelta(seconds=60)

    def test_attempt_over_limit_blocks_without_incrementing(self):
        config = LIMITS["test"]
        full = UsageCounter(identifier="user-1", action="test", window_start=NOW, count=5)

        counter, decision = evaluate_attempt(full, config, "user-1", "test", NOW + timedelta(seconds=10))

        assert counter.count == 5
        assert counter.blocked is True
        assert counter.block_until == NOW + timedelta(seconds=310)
        assert decision.allowed is False
        assert decision.blocked is True
        assert decision.retry_after == 300

    def test_count_never_exceeds_max_attempts(self):
        config = LIMITS["test"]
        counter = None
        for i in range(20):
            counter, _ = evaluate_attempt(counter, config, "user-1", "test", NOW + timedelta(seconds=i))
            assert counter.count <= config.max_attempts

    def test_only_the_blocking_attempt_starts_a_block(self):
        config = LIMITS["test"]
        full = UsageCounter(identifier="user-1", action="test", window_start=NOW, count=5)

        blocked, first = evaluate_attempt(full, config, "user-1", "test", NOW)
        _, second = evaluate_attempt(blocked, config, "user-1", "test", NOW)

        assert first.block_started is True
        assert second.blocked is True
        assert second.block_started is False

    def test_peek_does_not_count(self):
        config = LIMITS["test"]
        counter = UsageCounter(identifier="user-1", action="test", window_start=NOW, count=2)

        decision = peek_counter(counter, config, "user-1", "test", NOW)

        assert decision.allowed is True
        assert decision.remaining == 3


class TestRateLimiter:
    def test_allows_up_to_max_attempts(self, limiter):
        remaining = [limiter.check("user-1", "test").remaining for _ in range(5)]
        assert remaining == [4, 3, 2, 1, 0]

    def test_sixth_attempt_is_blocked(self, limiter):
        for _ in range(5):
            assert limiter.check("user-1", "test").allowed

        decision = limiter.check("user-1", "test")

        assert decision.allowed is False
        assert decision.blocked is True
        assert decision.retry_after == 300

    def test_blocked_attempts_keep_original_block_until(self, limiter, clock):
        for _ in range(6):
            limiter.check("user-1", "test")
        first_block = limiter.get_info("user-1", "test").reset_at

        clock.advance(seconds=100)
        decision = limiter.check("user-1", "test")

        assert decision.allowed is False
        assert decision.reset_at == first_block
        assert decision.retry_after == 200

    def test_still_blocked_at_block_until(self, limiter, clock):
        for _ in range(6):
            limiter.check("user-1", "test")

        clock.advance(seconds=300)

        assert limiter.check("user-1", "test").allowed is False

    def test_unblocked_after_block_duration(self, limiter, clock):
        for _ in range(6):
            limiter.check("user-1", "test")

        clock.advance(seconds=301)
        decision = limiter.check("user-1", "test")

        assert decision.allowed is True
        assert decision.remaining == 4

    def test_window_expiry_resets_count(self, limiter, clock):
        for _ in range(4):
            limiter.check("user-1", "test")

        clock.advance(seconds=61)
        decision = limiter.check("user-1", "test")

        assert decision.allowed is True
        assert decision.remaining == 4

    def test_keys_are_independent(self, limiter):
        for _ in range(6):
            limiter.check("user-1", "test")

        assert limiter.check("user-2", "test").allowed is True
        assert limiter.check("user-1", "login").allowed is True

    def test_unknown_action(self, limiter):
        with pytest.raises(ConfigurationError):
            limiter.check("user-1", "teleport")

    def test_default_limits(self, counter_store):
        limiter = RateLimiter(counter_store)
        assert limiter.get_config("swipe").max_attempts == 100
        assert limiter.get_config("login").reset_on_success is True

    def test_get_info_does_not_count(self, limiter):
        limiter.check("user-1", "test")

        first = limiter.get_info("user-1", "test")
        second = limiter.get_info("user-1", "test")

        assert first.remaining == 4
        assert second.remaining == 4

    def test_get_info_unknown_identifier(self, limiter, clock):
        info = limiter.get_info("nobody", "test")
        assert info.allowed is True
        assert info.remaining == 5
        assert info.reset_at == clock.now + timedelta(seconds=60)

    def test_counter_stored_under_action_key(self, limiter, counter_store):
        limiter.check("user-1", "test")
        stored = counter_store.get(rate_limit_key("user-1", "test"))
        assert stored is not None
        assert stored.count == 1
        assert rate_limit_key("user-1", "test") == "ratelimit:test:user-1"


class TestEnforce:
    def test_enforce_raises_when_blocked(self, limiter):
        for _ in range(5):
            limiter.enforce("user-1", "test")

        with pytest.raises(RateLimitBlockedError) as exc_info:
            limiter.enforce("user-1", "test")

        assert exc_info.value.action == "test"
        assert exc_info.value.retry_after == 300
        assert exc_info.value.status_code == 429

    @patch("golfmatch.utils.rate_limiter.logger")
    def test_enforce_warns_when_nearly_exhausted(self, mock_logger, limiter):
        for _ in range(3):
            limiter.enforce("user-1", "test")

        mock_logger.warning.assert_called_once_with(
            "rate_limit_warning", identifier="user-1", action="test", remaining=2
        )


class TestSuccessAndManualBlock:
    def test_record_success_resets_login(self, limiter):
        for _ in range(4):
            limiter.check("user-1", "login")

        limiter.record_success("user-1", "login")

        assert limiter.get_info("user-1", "login").remaining == 5

    def test_record_success_keeps_other_actions(self, limiter):
        for _ in range(4):
            limiter.check("user-1", "test")

        limiter.record_success("user-1", "test")

        assert limiter.get_info("user-1", "test").remaining == 1

    def test_block_identifier(self, limiter, clock):
        counter = limiter.block_identifier("user-1", "test")

        assert counter.blocked is True
        assert counter.block_until == clock.now + timedelta(seconds=300)
        assert limiter.check("user-1", "test").allowed is False

    def test_block_identifier_custom_duration(self, limiter, clock):
        limiter.block_identifier("user-1", "test", duration=30)

        clock.advance(seconds=31)

        assert limiter.check("user-1", "test").allowed is True


class TestSecurityLogging:
    @patch("golfmatch.utils.rate_limiter.logger")
    def test_exceeded_logged_once_per_block(self, mock_logger, limiter, clock):
        for _ in range(6):
            limiter.check("user-1", "test")
        clock.advance(seconds=10)
        limiter.check("user-1", "test")

        exceeded = [c for c in mock_logger.warning.call_args_list if c.args[0] == "rate_limit_exceeded"]
        assert len(exceeded) == 1
        assert exceeded[0].kwargs["identifier"] == "user-1"
        assert exceeded[0].kwargs["max_attempts"] == 5

    @patch("golfmatch.utils.rate_limiter.logger")
    def test_exceeded_logged_once_with_frozen_clock(self, mock_logger, limiter):
        for _ in range(8):
            limiter.check("user-1", "test")

        exceeded = [c for c in mock_logger.warning.call_args_list if c.args[0] == "rate_limit_exceeded"]
        assert len(exceeded) == 1

    @patch("golfmatch.utils.rate_limiter.logger")
    def test_manual_block_logged(self, mock_logger, limiter):
        limiter.block_identifier("user-1", "test", duration=60)

        mock_logger.warning.assert_called_once_with(
            "rate_limit_manual_block", identifier="user-1", action="test", block_duration=60
        )
