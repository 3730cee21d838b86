from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from progressly.db.session import get_db
from progressly.dependencies.auth import get_current_user
from progressly.models.user import User
from progressly.schemas.usage import AnalysisCheckResponse
from progressly.services.entitlements import can_perform_analysis, get_user_plan
from progressly.services.usage import record_analysis_usage

router = APIRouter()


@router.get("/check", response_model=AnalysisCheckResponse)
def check_analysis(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    plan = get_user_plan(db, user.id)
    entitlement = can_perform_analysis(db, user.id, plan)
    return AnalysisCheckResponse(
        canAnalyze=entitlement.can_analyze,
        remaining=entitlement.remaining,
        message=entitlement.message,
        plan=plan.value,
    )


@router.post("/record")
def record_analysis(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Count a finished analysis. Gating happens in /check before the analysis runs."""
    record_analysis_usage(db, user.id)
    return {"success": True}
