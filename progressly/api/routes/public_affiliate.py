"""
Public affiliate application form. No account required.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from progressly.db.session import get_db
from progressly.schemas.affiliate import PublicAffiliateApplyRequest
from progressly.services.affiliate import create_public_affiliate_application
from progressly.utils.responses import raise_for_result

router = APIRouter()


@router.post("/affiliate/apply")
def public_apply(body: PublicAffiliateApplyRequest, db: Session = Depends(get_db)):
    raise_for_result(create_public_affiliate_application(
        db,
        email=body.email,
        first_name=body.first_name,
        last_name=body.last_name,
        date_of_birth=body.date_of_birth,
        has_social_following=body.has_social_following,
        social_handle=body.social_handle,
        paypal_email=body.paypal_email,
    ))
    return {
        "success": True,
        "message": "Application submitted! We'll review it and get back to you by email.",
    }
