import os
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Union

# -1 means unlimited
UNLIMITED = -1


class UnknownPlanError(ValueError):
    """Raised for a plan identifier or Stripe price that is not in the catalog.

    Never fall back to the free plan here: a missing mapping is a billing
    misconfiguration and must surface.
    """


class PlanTier(str, Enum):
    FREE = "free"
    STARTER = "starter"
    PRO = "pro"


@dataclass(frozen=True)
class WeeklyAnalysisQuota:
    per_week: int
    period: str = "week"

    @property
    def limit(self) -> int:
        return self.per_week


@dataclass(frozen=True)
class DailyAnalysisQuota:
    per_day: int
    period: str = "day"

    @property
    def limit(self) -> int:
        return self.per_day


AnalysisQuota = Union[WeeklyAnalysisQuota, DailyAnalysisQuota]


@dataclass(frozen=True)
class PlanLimits:
    tier: PlanTier
    analyses: AnalysisQuota
    optimizations_per_month: int
    format_refreshes_per_month: int
    hooks_limit: int
    formats_limit: int
    saved_analyses_limit: int
    example_videos_blurred: bool
    copy_enabled: bool


# Plan limits configuration
# Free/Starter analyses are metered per week, Pro per day
PLAN_LIMITS: Dict[PlanTier, PlanLimits] = {
    PlanTier.FREE: PlanLimits(
        tier=PlanTier.FREE,
        analyses=WeeklyAnalysisQuota(per_week=1),
        optimizations_per_month=5,
        format_refreshes_per_month=2,
        hooks_limit=3,
        formats_limit=1,
        saved_analyses_limit=0,
        example_videos_blurred=True,
        copy_enabled=False,
    ),
    PlanTier.STARTER: PlanLimits(
        tier=PlanTier.STARTER,
        analyses=WeeklyAnalysisQuota(per_week=3),
        optimizations_per_month=20,
        format_refreshes_per_month=10,
        hooks_limit=10,
        formats_limit=5,
        saved_analyses_limit=10,
        example_videos_blurred=False,
        copy_enabled=True,
    ),
    PlanTier.PRO: PlanLimits(
        tier=PlanTier.PRO,
        analyses=DailyAnalysisQuota(per_day=1),
        optimizations_per_month=UNLIMITED,
        format_refreshes_per_month=UNLIMITED,
        hooks_limit=10,
        formats_limit=5,
        saved_analyses_limit=UNLIMITED,
        example_videos_blurred=False,
        copy_enabled=True,
    ),
}

# Marketing catalog served to the pricing page (USD)
PRICING = [
    {
        "tier": PlanTier.FREE.value,
        "title": "Free",
        "description": "For creators just getting started",
        "prices": {"monthly": 0, "yearly": 0},
    },
    {
        "tier": PlanTier.STARTER.value,
        "title": "Starter",
        "description": "Perfect for growing creators",
        "prices": {"monthly": 29, "yearly": 290},
    },
    {
        "tier": PlanTier.PRO.value,
        "title": "Pro",
        "description": "For serious content creators",
        "prices": {"monthly": 79, "yearly": 790},
    },
]


def parse_plan_tier(value: str) -> PlanTier:
    """Resolve a stored plan identifier, raising UnknownPlanError if it is not a known tier."""
    try:
        return PlanTier(value)
    except ValueError:
        raise UnknownPlanError(f"Unknown plan tier: {value!r}") from None


def get_plan_limits(plan_tier) -> PlanLimits:
    """Get the limit set for a plan tier (PlanTier or its string value)."""
    tier = plan_tier if isinstance(plan_tier, PlanTier) else parse_plan_tier(plan_tier)
    return PLAN_LIMITS[tier]


def _price_map() -> Dict[str, tuple]:
    mapping = {
        os.getenv("STRIPE_STARTER_MONTHLY_PRICE_ID", ""): (PlanTier.STARTER, "month"),
        os.getenv("STRIPE_STARTER_YEARLY_PRICE_ID", ""): (PlanTier.STARTER, "year"),
        os.getenv("STRIPE_PRO_MONTHLY_PRICE_ID", ""): (PlanTier.PRO, "month"),
        os.getenv("STRIPE_PRO_YEARLY_PRICE_ID", ""): (PlanTier.PRO, "year"),
    }
    mapping.pop("", None)
    return mapping


def plan_for_price(price_id: str) -> tuple:
    """Return (PlanTier, billing interval) for a configured Stripe price id."""
    plan = _price_map().get(price_id or "")
    if plan is None:
        raise UnknownPlanError(f"Stripe price {price_id!r} is not mapped to a plan")
    return plan


def plan_tier_for_price(price_id: str) -> PlanTier:
    return plan_for_price(price_id)[0]
