"""Subscription plans and per-tier feature limits."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from golfmatch.config import settings
from golfmatch.models.profile import SubscriptionTier
from golfmatch.utils.errors import FeatureNotAvailableError
from golfmatch.utils.logging import get_logger

logger = get_logger(__name__)


class PlanLimits(BaseModel):
    """
    Limits granted by a subscription plan.

    `daily_likes` is None for unlimited likes.
    """

    daily_likes: Optional[int]
    max_radius: int
    advanced_filters: bool
    see_who_liked_you: bool
    priority_placement: bool
    profile_boosts: int

    model_config = ConfigDict(frozen=True)


class SubscriptionPlan(BaseModel):
    id: str
    name: str
    tier: SubscriptionTier
    price: float
    billing_period: str
    limits: PlanLimits

    model_config = ConfigDict(frozen=True)


FREE_LIMITS = PlanLimits(
    daily_likes=settings.FREE_DAILY_LIKES,
    max_radius=settings.FREE_MAX_RADIUS,
    advanced_filters=False,
    see_who_liked_you=False,
    priority_placement=False,
    profile_boosts=0,
)

PREMIUM_LIMITS = PlanLimits(
    daily_likes=None,
    max_radius=settings.PREMIUM_MAX_RADIUS,
    advanced_filters=True,
    see_who_liked_you=True,
    priority_placement=True,
    profile_boosts=3,
)

SUBSCRIPTION_PLANS: List[SubscriptionPlan] = [
    SubscriptionPlan(
        id="free", name="Free", tier=SubscriptionTier.FREE, price=0, billing_period="monthly", limits=FREE_LIMITS
    ),
    SubscriptionPlan(
        id="premium-monthly",
        name="Premium",
        tier=SubscriptionTier.PREMIUM,
        price=9.99,
        billing_period="monthly",
        limits=PREMIUM_LIMITS,
    ),
    SubscriptionPlan(
        id="premium-yearly",
        name="Premium",
        tier=SubscriptionTier.PREMIUM,
        price=99.99,
        billing_period="yearly",
        limits=PREMIUM_LIMITS,
    ),
]

FEATURES = ("advanced_filters", "see_who_liked_you", "priority_placement", "profile_boosts", "daily_likes")


def get_plan(plan_id: str) -> Optional[SubscriptionPlan]:
    """Find a plan by id."""
    return next((plan for plan in SUBSCRIPTION_PLANS if plan.id == plan_id), None)


def get_plan_limits(tier: SubscriptionTier) -> PlanLimits:
    """Limits for a tier. Every plan of a tier shares the same limits."""
    return PREMIUM_LIMITS if tier == SubscriptionTier.PREMIUM else FREE_LIMITS


def get_max_radius(tier: SubscriptionTier) -> int:
    return get_plan_limits(tier).max_radius


def clamp_search_radius(tier: SubscriptionTier, radius: float) -> float:
    """Cap a requested radius at the tier's search radius ceiling."""
    return min(radius, get_max_radius(tier))


def has_premium_feature(tier: SubscriptionTier, feature: str) -> bool:
    """
    Check whether a tier includes a plan feature.

    Boolean limits are returned as-is; numeric limits count as available when
    positive, and unlimited (None) daily likes count as available.

    Raises:
        ValueError: If the feature name is unknown.
    """
    if feature not in FEATURES:
        raise ValueError(f"Unknown plan feature: {feature}")
    value = getattr(get_plan_limits(tier), feature)
    if value is None:
        return True
    if isinstance(value, bool):
        return value
    return value > 0


def can_use_advanced_filters(tier: SubscriptionTier) -> bool:
    return has_premium_feature(tier, "advanced_filters")


def can_see_who_liked_you(tier: SubscriptionTier) -> bool:
    return has_premium_feature(tier, "see_who_liked_you")


def has_priority_placement(tier: SubscriptionTier) -> bool:
    return has_premium_feature(tier, "priority_placement")


def require_feature(tier: SubscriptionTier, feature: str) -> None:
    """
    Fail when a tier lacks a feature.

    Raises:
        FeatureNotAvailableError: If the tier does not include the feature.
    """
    if not has_premium_feature(tier, feature):
        logger.info("Premium feature requested on free tier", feature=feature, tier=tier.value)
        raise FeatureNotAvailableError(
            f"{feature.replace('_', ' ').capitalize()} requires a premium subscription", feature=feature
        )
