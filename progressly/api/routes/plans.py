from fastapi import APIRouter

from progressly.core.plan_limits import PLAN_LIMITS, PRICING, PlanTier

router = APIRouter()


@router.get("")
def list_plans():
    plans = []
    for entry in PRICING:
        limits = PLAN_LIMITS[PlanTier(entry["tier"])]
        plans.append({
            **entry,
            "limits": {
                "analyses": {"limit": limits.analyses.limit, "period": limits.analyses.period},
                "optimizations_per_month": limits.optimizations_per_month,
                "format_refreshes_per_month": limits.format_refreshes_per_month,
                "hooks_limit": limits.hooks_limit,
                "formats_limit": limits.formats_limit,
                "saved_analyses_limit": limits.saved_analyses_limit,
                "example_videos_blurred": limits.example_videos_blurred,
                "copy_enabled": limits.copy_enabled,
            },
        })
    return {"success": True, "plans": plans}
