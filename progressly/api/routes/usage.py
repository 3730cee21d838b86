"""
Usage Routes
Current-period usage per category, and the gated record endpoints for
optimizations and trending format searches.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from progressly.core.plan_limits import UNLIMITED, DailyAnalysisQuota, get_plan_limits
from progressly.db.session import get_db
from progressly.dependencies.auth import get_current_user
from progressly.models.user import User
from progressly.schemas.usage import UsageCategory, UsageResponse
from progressly.services.entitlements import can_use_format_search, can_use_optimization, get_user_plan
from progressly.services.usage import get_user_usage, record_format_search_usage, record_optimization_usage

logger = logging.getLogger(__name__)

router = APIRouter()


def _category(used: int, limit: int) -> UsageCategory:
    return UsageCategory(used=used, limit=limit, unlimited=limit == UNLIMITED)


@router.get("", response_model=UsageResponse)
def get_usage(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    plan = get_user_plan(db, user.id)
    limits = get_plan_limits(plan)
    usage = get_user_usage(db, user.id)

    # Analyses are reported against the period the plan meters them by
    if isinstance(limits.analyses, DailyAnalysisQuota):
        analyses_used = usage.analyses_today
    else:
        analyses_used = usage.analyses_this_week

    return UsageResponse(
        formatSearches=_category(usage.format_searches_this_month, limits.format_refreshes_per_month),
        optimizations=_category(usage.optimizations_this_month, limits.optimizations_per_month),
        analyses=_category(analyses_used, limits.analyses.limit),
        plan=plan.value,
        currentMonth=usage.current_month,
        currentYear=usage.current_year,
        weekStart=usage.week_start.isoformat(),
    )


@router.post("/optimizations/record")
def record_optimization(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Consume one optimization. 400 when the monthly quota is used up."""
    plan = get_user_plan(db, user.id)
    entitlement = can_use_optimization(db, user.id, plan)
    if not entitlement.allowed:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=entitlement.message)
    record_optimization_usage(db, user.id)
    return {"success": True, "remaining": _remaining_after(entitlement.remaining)}


@router.post("/format-searches/record")
def record_format_search(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Consume one trending format search. 400 when the monthly quota is used up."""
    plan = get_user_plan(db, user.id)
    entitlement = can_use_format_search(db, user.id, plan)
    if not entitlement.allowed:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=entitlement.message)
    record_format_search_usage(db, user.id)
    return {"success": True, "remaining": _remaining_after(entitlement.remaining)}


def _remaining_after(remaining: int) -> int:
    return remaining if remaining == UNLIMITED else remaining - 1
