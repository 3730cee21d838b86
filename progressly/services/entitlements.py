"""
Entitlement checks: given a user's plan and current counters, decide whether a
metered action is allowed and how many uses remain.

All checks are read-only. Usage is recorded separately (services.usage) and
only after the gated action has actually run.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from progressly.core.plan_limits import (
    UNLIMITED,
    DailyAnalysisQuota,
    PlanTier,
    WeeklyAnalysisQuota,
    get_plan_limits,
    parse_plan_tier,
)
from progressly.models.subscription import Subscription
from progressly.services.usage import get_user_usage

# Paid access lasts one day past current_period_end
PAID_GRACE_PERIOD = timedelta(days=1)


@dataclass
class AnalysisEntitlement:
    can_analyze: bool
    remaining: int
    message: str


@dataclass
class Entitlement:
    allowed: bool
    remaining: int
    message: str


def is_paid_subscription(subscription: Optional[Subscription], now: Optional[datetime] = None) -> bool:
    if not subscription or not subscription.stripe_price_id or not subscription.current_period_end:
        return False
    now = now or datetime.utcnow()
    return subscription.current_period_end + PAID_GRACE_PERIOD > now


def get_user_plan(db: Session, user_id: int, now: Optional[datetime] = None) -> PlanTier:
    """
    Resolve the plan tier a user is entitled to right now.
    Users without a live paid subscription are on the free plan.
    Raises UnknownPlanError if the stored tier is not in the catalog.
    """
    subscription = db.query(Subscription).filter(Subscription.user_id == user_id).first()
    if not is_paid_subscription(subscription, now):
        return PlanTier.FREE
    return parse_plan_tier(subscription.plan_tier)


def _remaining(limit: int, used: int) -> int:
    return max(limit - used, 0)


def can_perform_analysis(
    db: Session, user_id: int, plan, now: Optional[datetime] = None
) -> AnalysisEntitlement:
    """
    Check whether the user can run another analysis.
    Weekly quotas are checked against this week's counter, daily quotas
    against today's. An unlimited quota is always allowed.
    """
    quota = get_plan_limits(plan).analyses
    limit = quota.limit
    if limit == UNLIMITED:
        return AnalysisEntitlement(can_analyze=True, remaining=UNLIMITED, message="Unlimited analyses")

    usage = get_user_usage(db, user_id, now)
    if isinstance(quota, DailyAnalysisQuota):
        remaining = _remaining(limit, usage.analyses_today)
        if remaining > 0:
            message = f"{remaining} of {limit} analyses remaining today"
        else:
            message = "Daily limit reached. Come back tomorrow!"
    elif isinstance(quota, WeeklyAnalysisQuota):
        remaining = _remaining(limit, usage.analyses_this_week)
        if remaining > 0:
            message = f"{remaining} of {limit} analyses remaining this week"
        else:
            message = "Weekly limit reached. Upgrade for more analyses!"
    else:
        raise TypeError(f"Unsupported analysis quota: {quota!r}")

    return AnalysisEntitlement(can_analyze=remaining > 0, remaining=remaining, message=message)


def _monthly_entitlement(limit: int, used: int, label: str) -> Entitlement:
    if limit == UNLIMITED:
        return Entitlement(allowed=True, remaining=UNLIMITED, message=f"Unlimited {label}s")
    remaining = _remaining(limit, used)
    if remaining > 0:
        message = f"{remaining} of {limit} {label}s remaining this month"
    else:
        message = f"Monthly {label} limit reached. Upgrade for more!"
    return Entitlement(allowed=remaining > 0, remaining=remaining, message=message)


def can_use_optimization(db: Session, user_id: int, plan, now: Optional[datetime] = None) -> Entitlement:
    """Check the monthly optimization quota (script, caption and cover tools share it)."""
    limits = get_plan_limits(plan)
    usage = get_user_usage(db, user_id, now)
    return _monthly_entitlement(limits.optimizations_per_month, usage.optimizations_this_month, "optimization")


def can_use_format_search(db: Session, user_id: int, plan, now: Optional[datetime] = None) -> Entitlement:
    """Check the monthly trending format search quota."""
    limits = get_plan_limits(plan)
    usage = get_user_usage(db, user_id, now)
    return _monthly_entitlement(limits.format_refreshes_per_month, usage.format_searches_this_month, "format search")
