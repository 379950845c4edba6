"""Usage counter, rate-limit and quota models."""

from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RateLimitConfig(BaseModel):
    """
    Rate limit configuration for one action kind.

    Attributes:
        window_seconds: Length of the fixed counting window.
        max_attempts: Allowed actions per window.
        block_seconds: Lockout applied once the limit is exceeded.
        reset_on_success: Clear the counter when the caller reports success (logins).
    """

    window_seconds: int = Field(..., gt=0)
    max_attempts: int = Field(..., gt=0)
    block_seconds: int = Field(..., gt=0)
    reset_on_success: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def window(self) -> timedelta:
        return timedelta(seconds=self.window_seconds)

    @property
    def block_duration(self) -> timedelta:
        return timedelta(seconds=self.block_seconds)


class UsageCounter(BaseModel):
    """
    Live usage counter for one (identifier, action) pair.

    Superseded by a fresh counter once its window or block period elapses.
    """

    identifier: str
    action: str
    window_start: datetime
    count: int = Field(default=0, ge=0)
    blocked: bool = False
    block_until: Optional[datetime] = None

    model_config = ConfigDict(frozen=True)


class RateLimitDecision(BaseModel):
    """Allow/deny decision returned by the rate limiter."""

    allowed: bool
    remaining: int
    reset_at: datetime
    blocked: bool = False
    retry_after: Optional[int] = None
    # Set only on the attempt that moved the counter into a block
    block_started: bool = False


class QuotaStatus(BaseModel):
    """
    Daily like quota status for a user.

    `limit` and `remaining` are None for unlimited (premium) users.
    """

    user_id: str
    allowed: bool
    used: int = 0
    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset_at: datetime
    is_unlimited: bool = False
