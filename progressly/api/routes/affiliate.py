"""
Affiliate Routes
Signed-in affiliate dashboard: application, stats, payouts, referral tracking
and the public leaderboard.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from progressly.db.session import get_db
from progressly.dependencies.auth import get_current_user, get_optional_user
from progressly.models.user import User
from progressly.schemas.affiliate import (
    AffiliateApplyRequest,
    AffiliateResponse,
    PayoutRequest,
    PayoutResponse,
    TrackClickRequest,
)
from progressly.services import affiliate as affiliate_service
from progressly.utils.responses import raise_for_result

logger = logging.getLogger(__name__)

router = APIRouter()

COOKIE_MAX_AGE = affiliate_service.COOKIE_DURATION_DAYS * 24 * 60 * 60


def _require_affiliate(db: Session, user: User):
    affiliate = affiliate_service.claim_affiliate_for_user(db, user)
    if not affiliate:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not an affiliate")
    return affiliate


def _serialize_affiliate(db: Session, affiliate) -> dict:
    data = AffiliateResponse.model_validate(affiliate).model_dump()
    data["referral_link"] = affiliate_service.referral_link(affiliate)
    data["available_balance"] = float(affiliate_service.get_available_balance(db, affiliate))
    return data


@router.get("/me")
def get_my_affiliate(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    affiliate = affiliate_service.claim_affiliate_for_user(db, user)
    if not affiliate:
        return {"affiliate": None}
    return {"affiliate": _serialize_affiliate(db, affiliate)}


@router.post("/apply")
def apply(
    body: AffiliateApplyRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = raise_for_result(affiliate_service.create_affiliate_application(
        db,
        user,
        paypal_email=body.paypal_email,
        first_name=body.first_name,
        last_name=body.last_name,
        date_of_birth=body.date_of_birth,
        has_social_following=bool(body.has_social_following),
        social_handle=body.social_handle,
    ))
    return {
        "success": True,
        "affiliate": _serialize_affiliate(db, result.data),
        "message": "Application submitted! We'll review it shortly.",
    }


@router.get("/stats")
def get_stats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    affiliate = _require_affiliate(db, user)
    stats = affiliate_service.get_affiliate_stats(db, affiliate)
    return {
        "success": True,
        "stats": {
            "clicks": stats["clicks"],
            "signups": stats["signups"],
            "conversions": stats["conversions"],
            "conversion_rate": stats["conversion_rate"],
            "total_earnings": float(stats["total_earnings"]),
            "pending_earnings": float(stats["pending_earnings"]),
            "paid_earnings": float(stats["paid_earnings"]),
        },
        "affiliate_code": affiliate.affiliate_code,
        "referral_link": affiliate_service.referral_link(affiliate),
        "commission_rate": float(affiliate_service.COMMISSION_RATE),
    }


@router.get("/payouts")
def get_payouts(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    affiliate = _require_affiliate(db, user)
    payouts = affiliate_service.list_payouts(db, affiliate_id=affiliate.id)
    available = affiliate_service.get_available_balance(db, affiliate)
    return {
        "success": True,
        "payouts": [PayoutResponse.model_validate(p) for p in payouts],
        "pending_earnings": float(affiliate.pending_earnings or 0),
        "available_balance": float(available),
        "minimum_payout": float(affiliate_service.MINIMUM_PAYOUT),
        "can_request_payout": affiliate.status == "approved" and available >= affiliate_service.MINIMUM_PAYOUT,
    }


@router.post("/payouts")
def create_payout(
    body: PayoutRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    affiliate = _require_affiliate(db, user)
    if affiliate.status != "approved":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Affiliate account not approved")

    result = raise_for_result(affiliate_service.request_payout(
        db, affiliate, body.amount, body.paypal_email
    ))
    return {
        "success": True,
        "payout": PayoutResponse.model_validate(result.data),
        "message": "Payout requested! We'll process it within 5-7 business days.",
    }


@router.post("/track")
def track_click(
    body: TrackClickRequest,
    response: Response,
    db: Session = Depends(get_db),
    visitor: Optional[User] = Depends(get_optional_user),
):
    """
    Record a referral link click and remember the referral in cookies.
    A signed-in affiliate opening their own link is not counted.
    """
    if not body.affiliate_code:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Affiliate code required")

    if visitor:
        own = affiliate_service.get_affiliate_by_user_id(db, visitor.id)
        if own and own.affiliate_code == body.affiliate_code.strip().upper():
            return {"success": True, "message": "Own referral link not tracked"}

    referral_id = affiliate_service.track_referral_click(db, body.affiliate_code)
    if referral_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid affiliate code")

    for key, value in (("ref", body.affiliate_code.strip().upper()), ("ref_id", str(referral_id))):
        response.set_cookie(
            key=key,
            value=value,
            max_age=COOKIE_MAX_AGE,
            httponly=True,
            samesite="lax",
            path="/",
        )
    return {"success": True, "message": "Referral tracked"}


@router.get("/track")
def get_tracked_referral(
    ref: Optional[str] = Cookie(None),
    ref_id: Optional[str] = Cookie(None),
):
    return {
        "has_referral": bool(ref),
        "affiliate_code": ref,
        "referral_id": ref_id,
    }


@router.post("/attribute")
def attribute_referral(
    response: Response,
    ref: Optional[str] = Cookie(None),
    ref_id: Optional[str] = Cookie(None),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Called after sign-up: links the new account to the affiliate in the referral cookies."""
    if not ref:
        return {"success": True, "attributed": False}

    try:
        referral_id = int(ref_id) if ref_id else None
    except ValueError:
        referral_id = None

    referral = affiliate_service.link_referral_to_user(db, ref, user.id, referral_id)
    response.delete_cookie("ref", path="/")
    response.delete_cookie("ref_id", path="/")
    return {"success": True, "attributed": referral is not None}


@router.get("/leaderboard")
def leaderboard(db: Session = Depends(get_db)):
    return {"success": True, "leaderboard": affiliate_service.get_leaderboard(db)}
