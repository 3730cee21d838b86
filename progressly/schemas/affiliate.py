from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime


class AffiliateApplyRequest(BaseModel):
    paypal_email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    has_social_following: Optional[bool] = False
    social_handle: Optional[str] = None


class PublicAffiliateApplyRequest(BaseModel):
    # Required fields are checked by the service so the error message is the form's own
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[date] = None
    has_social_following: Optional[bool] = False
    social_handle: Optional[str] = None
    paypal_email: Optional[str] = None


class AffiliateResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    email: Optional[str] = None
    affiliate_code: str
    status: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    has_social_following: bool
    social_handle: Optional[str] = None
    paypal_email: Optional[str] = None
    total_earnings: float
    pending_earnings: float
    paid_earnings: float
    created_at: datetime

    class Config:
        from_attributes = True


class AffiliateStatusUpdate(BaseModel):
    action: str  # approve, reject or suspend


class TrackClickRequest(BaseModel):
    affiliate_code: Optional[str] = None


class PayoutRequest(BaseModel):
    amount: Optional[float] = None  # Whole available balance when omitted
    paypal_email: Optional[str] = None


class PayoutResponse(BaseModel):
    id: int
    affiliate_id: int
    amount: float
    paypal_email: str
    status: str
    notes: Optional[str] = None
    requested_at: datetime
    processed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PayoutProcessRequest(BaseModel):
    action: str  # complete or reject
    notes: Optional[str] = None
