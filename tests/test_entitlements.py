from datetime import datetime, timedelta

import pytest

from progressly.core.plan_limits import UNLIMITED, PlanTier, UnknownPlanError
from progressly.models.subscription import Subscription
from progressly.services.entitlements import (
    can_perform_analysis,
    can_use_format_search,
    can_use_optimization,
    get_user_plan,
)
from progressly.services.usage import record_analysis_usage, record_format_search_usage, record_optimization_usage

NOW = datetime(2026, 4, 15, 10, 30)


def test_user_without_subscription_is_free(db_session, user):
    assert get_user_plan(db_session, user.id) == PlanTier.FREE


def test_active_paid_subscription(db_session, user, subscribe):
    subscribe(user, "pro")
    assert get_user_plan(db_session, user.id) == PlanTier.PRO


def test_expired_subscription_falls_back_to_free_after_grace_day(db_session, user):
    db_session.add(Subscription(
        user_id=user.id,
        plan_tier="starter",
        status="active",
        stripe_price_id="price_starter",
        current_period_end=NOW - timedelta(hours=12),
    ))
    db_session.commit()

    assert get_user_plan(db_session, user.id, now=NOW) == PlanTier.STARTER
    assert get_user_plan(db_session, user.id, now=NOW + timedelta(days=1)) == PlanTier.FREE


def test_stored_unknown_tier_raises(db_session, user, subscribe):
    subscribe(user, "enterprise")
    with pytest.raises(UnknownPlanError):
        get_user_plan(db_session, user.id)


def test_free_user_can_analyze_once_per_week(db_session, user):
    first = can_perform_analysis(db_session, user.id, PlanTier.FREE, now=NOW)
    assert first.can_analyze is True
    assert first.remaining == 1

    record_analysis_usage(db_session, user.id, now=NOW)

    exhausted = can_perform_analysis(db_session, user.id, PlanTier.FREE, now=NOW)
    assert exhausted.can_analyze is False
    assert exhausted.remaining == 0
    assert exhausted.message == "Weekly limit reached. Upgrade for more analyses!"


def test_starter_weekly_quota(db_session, user):
    for _ in range(2):
        record_analysis_usage(db_session, user.id, now=NOW)
    entitlement = can_perform_analysis(db_session, user.id, "starter", now=NOW)
    assert entitlement.can_analyze is True
    assert entitlement.remaining == 1

    record_analysis_usage(db_session, user.id, now=NOW)
    assert can_perform_analysis(db_session, user.id, "starter", now=NOW).can_analyze is False


def test_pro_daily_quota_resets_next_day(db_session, user):
    record_analysis_usage(db_session, user.id, now=NOW)

    today = can_perform_analysis(db_session, user.id, PlanTier.PRO, now=NOW)
    assert today.can_analyze is False
    assert today.remaining == 0
    assert today.message == "Daily limit reached. Come back tomorrow!"

    tomorrow = can_perform_analysis(db_session, user.id, PlanTier.PRO, now=NOW + timedelta(days=1))
    assert tomorrow.can_analyze is True
    assert tomorrow.remaining == 1


def test_never_allowed_with_nothing_remaining(db_session, user):
    for _ in range(4):
        record_analysis_usage(db_session, user.id, now=NOW)
    for plan in (PlanTier.FREE, PlanTier.STARTER, PlanTier.PRO):
        entitlement = can_perform_analysis(db_session, user.id, plan, now=NOW)
        assert not (entitlement.can_analyze and entitlement.remaining <= 0)
        assert entitlement.remaining >= 0


def test_check_does_not_consume(db_session, user):
    for _ in range(3):
        can_perform_analysis(db_session, user.id, PlanTier.FREE, now=NOW)
    assert can_perform_analysis(db_session, user.id, PlanTier.FREE, now=NOW).remaining == 1


def test_optimization_monthly_quota(db_session, user):
    for _ in range(5):
        record_optimization_usage(db_session, user.id, now=NOW)
    entitlement = can_use_optimization(db_session, user.id, PlanTier.FREE, now=NOW)
    assert entitlement.allowed is False
    assert entitlement.remaining == 0

    starter = can_use_optimization(db_session, user.id, PlanTier.STARTER, now=NOW)
    assert starter.allowed is True
    assert starter.remaining == 15


def test_pro_has_unlimited_format_searches(db_session, user):
    for _ in range(10):
        record_format_search_usage(db_session, user.id, now=NOW)
    entitlement = can_use_format_search(db_session, user.id, PlanTier.PRO, now=NOW)
    assert entitlement.allowed is True
    assert entitlement.remaining == UNLIMITED
